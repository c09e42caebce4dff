"""
Application intake and listings
"""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import ADMIN, DataFactory
from internbooth.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from internbooth.models import ApplicationCreate
from internbooth.services import list_applications, submit_application


async def test_apply_opens_round_one(db_session: AsyncSession, factory: DataFactory):
    internship = await factory.create_internship()
    student = await factory.create_student(name="Asha Rao")

    application = await submit_application(db_session, internship.id, ApplicationCreate(student_id=student.id), ADMIN)

    assert application.status == "form_submitted"
    assert application.current_round == 1
    assert application.student_name == "Asha Rao"
    assert [(r["round_number"], r["status"]) for r in application.rounds] == [(1, "pending")]


async def test_one_application_per_student_and_internship(db_session: AsyncSession, factory: DataFactory):
    internship = await factory.create_internship()
    student = await factory.create_student()
    payload = ApplicationCreate(student_id=student.id)

    await submit_application(db_session, internship.id, payload, ADMIN)
    with pytest.raises(ConflictError):
        await submit_application(db_session, internship.id, payload, ADMIN)


async def test_apply_checks_references(db_session: AsyncSession, factory: DataFactory):
    closed = await factory.create_internship(status="closed")
    student = await factory.create_student()

    with pytest.raises(InvalidStateError):
        await submit_application(db_session, closed.id, ApplicationCreate(student_id=student.id), ADMIN)
    with pytest.raises(NotFoundError):
        await submit_application(db_session, "missing", ApplicationCreate(student_id=student.id), ADMIN)


async def test_listing_by_internship_and_across(db_session: AsyncSession, factory: DataFactory):
    first = await factory.create_internship()
    second = await factory.create_internship()
    await factory.create_application(internship_id=first.id)
    await factory.create_application(internship_id=first.id)
    await factory.create_application(internship_id=second.id)

    items, total = await list_applications(db_session, first.id)
    assert total == 2
    assert {a.internship_id for a in items} == {first.id}

    items, total = await list_applications(db_session)
    assert total == 3

    items, total = await list_applications(db_session, status="form_approved")
    assert (items, total) == ([], 0)
