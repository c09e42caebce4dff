"""
Review and decision protocol

Records admin decisions on a round and moves the application accordingly.
Every decision re-reads its documents inside the transaction, so two admins
acting on the same application cannot both win. The linked quiz submission
is mirrored after the commit on a best-effort basis.
"""
from dataclasses import dataclass
from typing import Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.core.change_feed import Collection
from internbooth.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from internbooth.crud import application_crud, assignment_crud
from internbooth.models import (
    Application,
    AssignmentStatus,
    RoundStatus,
    SubmissionStatus,
    TestAssignment,
    utcnow,
)
from . import live
from .common import detach, mirror_quiz_submission, require_actor, store_errors, unit_of_work
from .round_ledger import append_pending_round, upsert_round
from .state_machine import Event, advance_round, transition

FORM_ROUND = 1
QUIZ_ROUND = 2


@dataclass
class ReviewOutcome:
    """Documents as committed by a review"""
    assignment: Optional[TestAssignment]
    application: Application


def _require_feedback(feedback: Optional[str], what: str) -> str:
    if feedback is None or not feedback.strip():
        raise ValidationError(f"Feedback is required when rejecting {what}")
    return feedback.strip()


async def _load_completed_assignment(db: AsyncSession, assignment_id: str, verb: str) -> TestAssignment:
    assignment = await assignment_crud.get(db, assignment_id, for_update=True)
    if assignment is None:
        raise NotFoundError("Test assignment not found")
    if assignment.status != AssignmentStatus.COMPLETED.value:
        raise InvalidStateError(f"Cannot {verb} test with status: {assignment.status}")
    return assignment


async def _load_owning_application(db: AsyncSession, assignment: TestAssignment) -> Application:
    application = await application_crud.get_in_internship(
        db, assignment.internship_id, assignment.application_id, for_update=True
    )
    if application is None:
        raise NotFoundError("Application not found")
    return application


@store_errors
async def approve_test_result(
    db: AsyncSession,
    assignment_id: str,
    actor: Optional[str],
    feedback: Optional[str] = None,
    advance_to_next_round: bool = True
) -> ReviewOutcome:
    """
    Approve a completed test

    Advancing marks the current round passed and opens the next one with
    status quiz_approved; not advancing selects the candidate.
    """
    actor = require_actor(actor)
    feedback = (feedback or "").strip()

    async with unit_of_work(db):
        assignment = await _load_completed_assignment(db, assignment_id, "approve")
        application = await _load_owning_application(db, assignment)

        event = Event.APPROVE_QUIZ if advance_to_next_round else Event.SELECT
        next_status = transition(application.status, event)
        now = utcnow()
        current_round = application.current_round or FORM_ROUND

        rounds = upsert_round(
            application.rounds, current_round, RoundStatus.PASSED,
            feedback=feedback,
            evaluated_by=actor,
            test_assignment_id=assignment.id,
            evaluated_at=now,
        )
        patch = {"status": next_status.value, "updated_at": now}
        if advance_to_next_round:
            patch["current_round"] = advance_round(current_round, current_round + 1)
            rounds = append_pending_round(rounds, patch["current_round"])
        else:
            patch["selected_at"] = now
        patch["rounds"] = rounds

        assignment = await assignment_crud.update(db, db_obj=assignment, obj_in={
            "status": AssignmentStatus.APPROVED.value,
            "feedback": feedback,
            "reviewed_at": now,
            "reviewed_by": actor,
            "updated_at": now,
        })
        application = await application_crud.update(db, db_obj=application, obj_in=patch)

    detach(db, assignment, application)
    logger.info(
        f"Test assignment {assignment_id} approved by {actor}; application {application.id} "
        f"-> {application.status} (round {application.current_round})"
    )

    await mirror_quiz_submission(db, application.quiz_submission_id, {
        "status": SubmissionStatus.APPROVED.value,
        "feedback": feedback,
        "reviewed_at": now,
        "reviewed_by": actor,
        "evaluated_at": now,
        "updated_at": now,
    })
    await live.publish(
        db, Collection.APPLICATIONS, Collection.TEST_ASSIGNMENTS, Collection.QUIZ_SUBMISSIONS
    )
    return ReviewOutcome(assignment=assignment, application=application)


@store_errors
async def reject_test_result(
    db: AsyncSession,
    assignment_id: str,
    feedback: Optional[str],
    actor: Optional[str]
) -> ReviewOutcome:
    """Reject a completed test; feedback is mandatory"""
    actor = require_actor(actor)
    feedback = _require_feedback(feedback, "a test")

    async with unit_of_work(db):
        assignment = await _load_completed_assignment(db, assignment_id, "reject")
        application = await _load_owning_application(db, assignment)

        next_status = transition(application.status, Event.REJECT_QUIZ)
        now = utcnow()
        current_round = application.current_round or FORM_ROUND

        assignment = await assignment_crud.update(db, db_obj=assignment, obj_in={
            "status": AssignmentStatus.REJECTED.value,
            "feedback": feedback,
            "reviewed_at": now,
            "reviewed_by": actor,
            "updated_at": now,
        })
        application = await application_crud.update(db, db_obj=application, obj_in={
            "status": next_status.value,
            "rounds": upsert_round(
                application.rounds, current_round, RoundStatus.FAILED,
                feedback=feedback,
                evaluated_by=actor,
                test_assignment_id=assignment.id,
                evaluated_at=now,
            ),
            "updated_at": now,
        })

    detach(db, assignment, application)
    logger.info(f"Test assignment {assignment_id} rejected by {actor}; application {application.id} -> {application.status}")

    await mirror_quiz_submission(db, application.quiz_submission_id, {
        "status": SubmissionStatus.REJECTED.value,
        "feedback": feedback,
        "reviewed_at": now,
        "reviewed_by": actor,
        "evaluated_at": now,
        "updated_at": now,
    })
    await live.publish(
        db, Collection.APPLICATIONS, Collection.TEST_ASSIGNMENTS, Collection.QUIZ_SUBMISSIONS
    )
    return ReviewOutcome(assignment=assignment, application=application)


# ==================== Application-level decisions ====================

async def _decide(
    db: AsyncSession,
    internship_id: str,
    application_id: str,
    *,
    round_number: int,
    event: Event,
    round_status: RoundStatus,
    feedback: Optional[str],
    actor: str,
    mirror_status: Optional[SubmissionStatus] = None
) -> Application:
    """
    Record a round outcome directly on an application

    Shared by the form round and the final quiz round decisions.
    """
    async with unit_of_work(db):
        application = await application_crud.get_in_internship(
            db, internship_id, application_id, for_update=True
        )
        if application is None:
            raise NotFoundError("Application not found")

        next_status = transition(application.status, event)
        if event is Event.FINAL_REJECT:
            # a round opened by an advancing approval is the one that fails
            round_number = max(round_number, application.current_round)
        now = utcnow()
        patch = {
            "status": next_status.value,
            "rounds": upsert_round(
                application.rounds, round_number, round_status,
                feedback=feedback,
                evaluated_by=actor,
                evaluated_at=now,
            ),
            "updated_at": now,
        }
        if round_status is RoundStatus.PASSED:
            patch["current_round"] = advance_round(
                application.current_round, round_number + 1 if event is Event.APPROVE_FORM else round_number
            )
        if event is Event.SELECT:
            patch["selected_at"] = now

        application = await application_crud.update(db, db_obj=application, obj_in=patch)

    detach(db, application)
    logger.info(
        f"Application {application_id} round {round_number} {round_status.value} by {actor} -> {application.status}"
    )

    if mirror_status is not None:
        await mirror_quiz_submission(db, application.quiz_submission_id, {
            "status": mirror_status.value,
            "feedback": feedback or "",
            "reviewed_at": now,
            "reviewed_by": actor,
            "evaluated_at": now,
            "updated_at": now,
        })
    await live.publish(db, Collection.APPLICATIONS, Collection.QUIZ_SUBMISSIONS)
    return application


@store_errors
async def proceed_to_round2(
    db: AsyncSession,
    internship_id: str,
    application_id: str,
    actor: Optional[str],
    feedback: Optional[str] = None
) -> Application:
    """Approve the round 1 form; the student becomes eligible for a quiz"""
    return await _decide(
        db, internship_id, application_id,
        round_number=FORM_ROUND,
        event=Event.APPROVE_FORM,
        round_status=RoundStatus.PASSED,
        feedback=feedback,
        actor=require_actor(actor),
    )


@store_errors
async def reject_round1(
    db: AsyncSession,
    internship_id: str,
    application_id: str,
    actor: Optional[str],
    feedback: Optional[str] = None
) -> Application:
    """Reject the round 1 form"""
    return await _decide(
        db, internship_id, application_id,
        round_number=FORM_ROUND,
        event=Event.REJECT_FORM,
        round_status=RoundStatus.FAILED,
        feedback=feedback,
        actor=require_actor(actor),
    )


@store_errors
async def select_after_round2(
    db: AsyncSession,
    internship_id: str,
    application_id: str,
    actor: Optional[str],
    feedback: Optional[str] = None
) -> Application:
    """Final selection after the quiz round"""
    return await _decide(
        db, internship_id, application_id,
        round_number=QUIZ_ROUND,
        event=Event.SELECT,
        round_status=RoundStatus.PASSED,
        feedback=feedback,
        actor=require_actor(actor),
        mirror_status=SubmissionStatus.APPROVED,
    )


@store_errors
async def reject_after_round2(
    db: AsyncSession,
    internship_id: str,
    application_id: str,
    actor: Optional[str],
    feedback: Optional[str] = None
) -> Application:
    """Final rejection after the quiz round review"""
    return await _decide(
        db, internship_id, application_id,
        round_number=QUIZ_ROUND,
        event=Event.FINAL_REJECT,
        round_status=RoundStatus.FAILED,
        feedback=feedback,
        actor=require_actor(actor),
        mirror_status=SubmissionStatus.REJECTED,
    )
