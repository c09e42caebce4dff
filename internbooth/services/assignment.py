"""
Test assignment protocol

Creates the round 2 test assignment for an approved form and flips the
owning application in the same transaction.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.core.change_feed import Collection
from internbooth.core.exceptions import (
    AppException,
    DuplicateAssignmentError,
    InvalidStateError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from internbooth.crud import (
    application_crud,
    assignment_crud,
    internship_crud,
    student_crud,
    test_crud,
)
from internbooth.models import (
    AssignmentStatus,
    REVIEWED_STATUSES,
    RoundStatus,
    TestAssignment,
    TestAssignmentCreate,
    assignment_key,
    utcnow,
)
from . import live
from .common import detach, require_actor, store_errors, unit_of_work
from .round_ledger import upsert_round
from .state_machine import Event, advance_round, can_transition, transition

QUIZ_ROUND = 2


@dataclass
class BulkAssignResult:
    """Outcome of a multi-student assignment"""
    succeeded: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)
    assignment_ids: List[str] = field(default_factory=list)


@store_errors
async def assign_test(
    db: AsyncSession,
    payload: TestAssignmentCreate,
    actor: Optional[str]
) -> TestAssignment:
    """
    Assign a test to one application

    Checks run in this order: actor, application exists, ids match,
    no existing assignment, status is form_approved, test/student/internship
    exist. The assignment key is derived from the application id, so a
    concurrent duplicate fails on insert even if it slipped past the check.
    """
    actor = require_actor(actor)

    application = await application_crud.get_in_internship(
        db, payload.internship_id, payload.application_id
    )
    if application is None:
        raise NotFoundError("Application not found")

    if application.student_id != payload.student_id:
        raise ValidationError("Student ID in application does not match the provided student ID")
    if application.internship_id != payload.internship_id:
        raise ValidationError("Internship ID in application does not match the provided internship ID")

    if await assignment_crud.get_by_application(db, application.id) is not None:
        raise DuplicateAssignmentError()

    if not can_transition(application.status, Event.ASSIGN_TEST):
        raise InvalidStateError(
            f"Cannot assign test to application with status: {application.status}. "
            "Application must be in 'form_approved' status to proceed to Round 2 quiz."
        )
    next_status = transition(application.status, Event.ASSIGN_TEST)

    if await test_crud.get(db, payload.test_id) is None:
        raise NotFoundError("Test not found")
    if await student_crud.get(db, payload.student_id) is None:
        raise NotFoundError("Student not found")
    if await internship_crud.get(db, payload.internship_id) is None:
        raise NotFoundError("Internship not found")

    now = utcnow()
    async with unit_of_work(db):
        assignment = TestAssignment(
            id=assignment_key(application.id),
            application_id=application.id,
            student_id=payload.student_id,
            internship_id=payload.internship_id,
            test_id=payload.test_id,
            status=AssignmentStatus.ASSIGNED.value,
            assigned_at=now,
            assigned_by=actor,
        )
        db.add(assignment)
        try:
            await db.flush()
        except IntegrityError:
            raise DuplicateAssignmentError()

        await application_crud.update(db, db_obj=application, obj_in={
            "status": next_status.value,
            "current_round": advance_round(application.current_round, QUIZ_ROUND),
            "test_assignment_id": assignment.id,
            "test_id": payload.test_id,
            "test_assigned_at": now,
            "rounds": upsert_round(
                application.rounds, 1, RoundStatus.PASSED,
                feedback="Form approved for Round 2 quiz",
                evaluated_by=actor,
                evaluated_at=now,
            ),
            "updated_at": now,
        })
        await db.refresh(assignment)

    detach(db, assignment, application)
    logger.info(f"Test {payload.test_id} assigned to application {application.id} by {actor}")
    await live.publish(db, Collection.APPLICATIONS, Collection.TEST_ASSIGNMENTS)
    return assignment


async def bulk_assign_tests(
    db: AsyncSession,
    internship_id: str,
    test_id: str,
    student_ids: List[str],
    actor: Optional[str]
) -> BulkAssignResult:
    """
    Assign one test to several students of an internship

    Each student runs as its own transaction; a failure is recorded and the
    remaining students are still processed.
    """
    actor = require_actor(actor)
    result = BulkAssignResult()

    for student_id in student_ids:
        try:
            application = await application_crud.get_by_student(db, internship_id, student_id)
            if application is None:
                raise NotFoundError(
                    f"No application found for student ID {student_id} in the selected internship."
                )
            assignment = await assign_test(
                db,
                TestAssignmentCreate(
                    internship_id=internship_id,
                    application_id=application.id,
                    student_id=student_id,
                    test_id=test_id,
                ),
                actor,
            )
        except AppException as exc:
            await db.rollback()
            result.failed += 1
            result.errors.append(f"{student_id}: {exc.message}")
            continue
        except SQLAlchemyError:
            await db.rollback()
            result.failed += 1
            result.errors.append(f"{student_id}: {TransientStoreError().message}")
            continue

        result.succeeded += 1
        result.assignment_ids.append(assignment.id)

    logger.info(
        f"Bulk assignment of test {test_id} in internship {internship_id}: "
        f"{result.succeeded} succeeded, {result.failed} failed"
    )
    return result


@store_errors
async def start_test_assignment(
    db: AsyncSession,
    assignment_id: str,
    actor: Optional[str]
) -> TestAssignment:
    """The student opened the test: assigned -> in_progress"""
    require_actor(actor)

    async with unit_of_work(db):
        assignment = await assignment_crud.get(db, assignment_id, for_update=True)
        if assignment is None:
            raise NotFoundError("Test assignment not found")
        if assignment.status != AssignmentStatus.ASSIGNED.value:
            raise InvalidStateError(f"Cannot start test with status: {assignment.status}")

        assignment = await assignment_crud.update(db, db_obj=assignment, obj_in={
            "status": AssignmentStatus.IN_PROGRESS.value,
            "started_at": utcnow(),
            "updated_at": utcnow(),
        })

    detach(db, assignment)
    await live.publish(db, Collection.TEST_ASSIGNMENTS)
    return assignment


@store_errors
async def delete_test_assignment(
    db: AsyncSession,
    assignment_id: str,
    actor: Optional[str]
) -> str:
    """
    Withdraw an assignment that has not been completed or reviewed

    An application still waiting on the test goes back to form_approved so a
    new test can be assigned; its current round is left as is.
    """
    actor = require_actor(actor)

    async with unit_of_work(db):
        assignment = await assignment_crud.get(db, assignment_id, for_update=True)
        if assignment is None:
            raise NotFoundError("Test assignment not found")
        if assignment.status == AssignmentStatus.COMPLETED.value:
            raise InvalidStateError("Cannot delete a completed test assignment")
        if assignment.status in REVIEWED_STATUSES:
            raise InvalidStateError(f"Cannot delete a reviewed test assignment (status: {assignment.status})")

        application = await application_crud.get_in_internship(
            db, assignment.internship_id, assignment.application_id, for_update=True
        )
        await db.delete(assignment)
        await db.flush()

        if application is not None and application.test_assignment_id == assignment_id:
            patch = {"test_assignment_id": None, "updated_at": utcnow()}
            if can_transition(application.status, Event.UNASSIGN_TEST):
                patch["status"] = transition(application.status, Event.UNASSIGN_TEST).value
            await application_crud.update(db, db_obj=application, obj_in=patch, exclude_none=False)

    logger.info(f"Test assignment {assignment_id} deleted by {actor}")
    await live.publish(db, Collection.APPLICATIONS, Collection.TEST_ASSIGNMENTS)
    return assignment_id
