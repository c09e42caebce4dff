"""
Review and decision protocol
"""
import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import ADMIN, DataFactory, fetch
from internbooth.core.exceptions import (
    AuthRequiredError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from internbooth.crud import submission_crud
from internbooth.models import (
    Application,
    ApplicationStatus,
    QuizSubmission,
    TestAssignment,
)
from internbooth.services import (
    approve_test_result,
    proceed_to_round2,
    reject_after_round2,
    reject_round1,
    reject_test_result,
    select_after_round2,
)


def _ledger(application):
    return [(r["round_number"], r["status"]) for r in application.rounds]


async def test_approve_and_advance_opens_next_round(db_session: AsyncSession, factory: DataFactory):
    application_id, assignment_id, submission = await factory.completed_quiz()

    outcome = await approve_test_result(db_session, assignment_id, ADMIN, "Great work", True)

    assert outcome.assignment.status == "approved"
    assert outcome.assignment.reviewed_by == ADMIN
    assert outcome.assignment.feedback == "Great work"

    application = await fetch(db_session, Application, application_id)
    assert application.status == "quiz_approved"
    assert application.current_round == 3
    assert _ledger(application) == [(1, "passed"), (2, "passed"), (3, "pending")]
    assert application.rounds[1]["feedback"] == "Great work"
    assert application.rounds[1]["test_assignment_id"] == assignment_id
    assert application.selected_at is None

    mirrored = await fetch(db_session, QuizSubmission, submission.id)
    assert mirrored.status == "approved"
    assert mirrored.feedback == "Great work"
    assert mirrored.evaluated_at is not None


async def test_approve_without_advancing_selects(db_session: AsyncSession, factory: DataFactory):
    application_id, assignment_id, _ = await factory.completed_quiz()

    await approve_test_result(db_session, assignment_id, ADMIN, "", False)

    application = await fetch(db_session, Application, application_id)
    assert application.status == "selected"
    assert application.selected_at is not None
    assert application.current_round == 2
    assert _ledger(application) == [(1, "passed"), (2, "passed")]


async def test_reject_requires_feedback(db_session: AsyncSession, factory: DataFactory):
    application_id, assignment_id, _ = await factory.completed_quiz()
    before = (await fetch(db_session, Application, application_id)).model_dump()

    for feedback in ("", "   ", None):
        with pytest.raises(ValidationError) as exc:
            await reject_test_result(db_session, assignment_id, feedback, ADMIN)
        assert "Feedback is required" in exc.value.message

    assert (await fetch(db_session, Application, application_id)).model_dump() == before
    assert (await fetch(db_session, TestAssignment, assignment_id)).status == "completed"


async def test_reject_fails_the_current_round(db_session: AsyncSession, factory: DataFactory):
    application_id, assignment_id, submission = await factory.completed_quiz()

    outcome = await reject_test_result(db_session, assignment_id, "Insufficient depth", ADMIN)

    assert outcome.assignment.status == "rejected"
    application = await fetch(db_session, Application, application_id)
    assert application.status == "quiz_rejected"
    assert _ledger(application) == [(1, "passed"), (2, "failed")]
    assert application.rounds[1]["feedback"] == "Insufficient depth"
    assert (await fetch(db_session, QuizSubmission, submission.id)).status == "rejected"


async def test_review_only_once(db_session: AsyncSession, factory: DataFactory):
    _, assignment_id, _ = await factory.completed_quiz()
    await approve_test_result(db_session, assignment_id, ADMIN, "ok", True)

    with pytest.raises(InvalidStateError) as exc:
        await reject_test_result(db_session, assignment_id, "changed my mind", ADMIN)
    assert exc.value.message == "Cannot reject test with status: approved"


async def test_review_of_unfinished_or_missing_assignment(db_session: AsyncSession, factory: DataFactory):
    _, assignment, _ = await factory.assigned_application()

    with pytest.raises(InvalidStateError):
        await approve_test_result(db_session, assignment.id, ADMIN)
    with pytest.raises(NotFoundError):
        await approve_test_result(db_session, "ta-missing", ADMIN)
    with pytest.raises(AuthRequiredError):
        await approve_test_result(db_session, assignment.id, "")


async def test_terminal_application_is_not_reopened(db_session: AsyncSession, factory: DataFactory):
    application_id, assignment_id, _ = await factory.completed_quiz()
    application = await fetch(db_session, Application, application_id)
    application.status = ApplicationStatus.REJECTED.value
    await db_session.commit()

    with pytest.raises(InvalidStateError):
        await approve_test_result(db_session, assignment_id, ADMIN)

    assert (await fetch(db_session, TestAssignment, assignment_id)).status == "completed"
    assert (await fetch(db_session, Application, application_id)).status == "rejected"


async def test_mirror_failure_keeps_primary_decision(db_session: AsyncSession, factory: DataFactory, monkeypatch):
    application_id, assignment_id, submission = await factory.completed_quiz()

    async def broken_get(db, id, *, for_update=False):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(submission_crud, "get", broken_get)

    outcome = await approve_test_result(db_session, assignment_id, ADMIN, "fine", True)
    assert outcome.application.status == "quiz_approved"

    monkeypatch.undo()
    assert (await fetch(db_session, Application, application_id)).status == "quiz_approved"
    assert (await fetch(db_session, TestAssignment, assignment_id)).status == "approved"
    assert (await fetch(db_session, QuizSubmission, submission.id)).status == "pending"


# ==================== Application-level decisions ====================

async def test_round_one_decisions(db_session: AsyncSession, factory: DataFactory):
    approved = await factory.create_application()
    result = await proceed_to_round2(db_session, approved.internship_id, approved.id, ADMIN, "Solid form")
    assert result.status == "form_approved"
    assert result.current_round == 2
    assert _ledger(result) == [(1, "passed")]

    rejected = await factory.create_application()
    result = await reject_round1(db_session, rejected.internship_id, rejected.id, ADMIN, "Incomplete")
    assert result.status == "rejected_round1"
    assert result.current_round == 1
    assert _ledger(result) == [(1, "failed")]

    with pytest.raises(InvalidStateError):
        await proceed_to_round2(db_session, rejected.internship_id, rejected.id, ADMIN)


async def test_final_decisions_after_quiz(db_session: AsyncSession, factory: DataFactory):
    application_id, _, submission = await factory.completed_quiz()
    application = await fetch(db_session, Application, application_id)

    result = await select_after_round2(db_session, application.internship_id, application_id, ADMIN, "Welcome")
    assert result.status == "selected"
    assert result.selected_at is not None
    assert _ledger(result) == [(1, "passed"), (2, "passed")]
    assert (await fetch(db_session, QuizSubmission, submission.id)).status == "approved"

    other_id, _, other_submission = await factory.completed_quiz()
    other = await fetch(db_session, Application, other_id)
    result = await reject_after_round2(db_session, other.internship_id, other_id, ADMIN, "Not this time")
    assert result.status == "rejected"
    assert _ledger(result) == [(1, "passed"), (2, "failed")]
    assert (await fetch(db_session, QuizSubmission, other_submission.id)).status == "rejected"

    with pytest.raises(InvalidStateError):
        await reject_after_round2(db_session, application.internship_id, application_id, ADMIN)


async def test_final_reject_after_advancing_closes_open_round(db_session: AsyncSession, factory: DataFactory):
    application_id, assignment_id, _ = await factory.completed_quiz()
    await approve_test_result(db_session, assignment_id, ADMIN, "Great work", True)
    application = await fetch(db_session, Application, application_id)

    result = await reject_after_round2(db_session, application.internship_id, application_id, ADMIN, "Position filled")

    assert result.status == "rejected"
    assert _ledger(result) == [(1, "passed"), (2, "passed"), (3, "failed")]
    assert result.rounds[1]["feedback"] == "Great work"
    assert result.rounds[2]["feedback"] == "Position filled"
