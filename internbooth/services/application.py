"""
Application intake

A student applies once per internship; the form counts as submitted on
creation and round 1 is opened as pending.
"""
from typing import Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.core.change_feed import Collection
from internbooth.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from internbooth.crud import application_crud, internship_crud, student_crud
from internbooth.models import (
    Application,
    ApplicationCreate,
    ApplicationStatus,
    InternshipStatus,
    utcnow,
)
from . import live
from .common import detach, require_actor, store_errors, unit_of_work
from .round_ledger import append_pending_round
from .state_machine import Event, transition


@store_errors
async def submit_application(
    db: AsyncSession,
    internship_id: str,
    payload: ApplicationCreate,
    actor: Optional[str]
) -> Application:
    require_actor(actor)

    internship = await internship_crud.get(db, internship_id)
    if internship is None:
        raise NotFoundError("Internship not found")
    if internship.status != InternshipStatus.ACTIVE.value:
        raise InvalidStateError(f"Internship is not accepting applications (status: {internship.status})")

    student = await student_crud.get(db, payload.student_id)
    if student is None:
        raise NotFoundError("Student not found")

    if await application_crud.get_by_student(db, internship_id, student.id) is not None:
        raise ConflictError("Student has already applied to this internship")

    now = utcnow()
    async with unit_of_work(db):
        application = Application(
            internship_id=internship_id,
            student_id=student.id,
            student_name=student.name,
            student_email=student.email,
            status=transition(ApplicationStatus.FORM_PENDING, Event.SUBMIT_FORM).value,
            current_round=1,
            rounds=append_pending_round([], 1),
            applied_at=now,
        )
        db.add(application)
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("Student has already applied to this internship")
        await db.refresh(application)

    detach(db, application)
    logger.info(f"Student {student.id} applied to internship {internship_id} (application {application.id})")
    await live.publish(db, Collection.APPLICATIONS)
    return application
