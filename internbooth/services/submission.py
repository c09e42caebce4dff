"""
Quiz submission ingestion

The student-facing quiz flow hands its answers to record_quiz_submission.
Historical payload shapes are folded into one canonical QuestionRecord here
and nowhere else.
"""
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.core.change_feed import Collection
from internbooth.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from internbooth.crud import application_crud, assignment_crud, test_crud
from internbooth.models import (
    AssignmentStatus,
    McqAnswer,
    QuestionRecord,
    QuestionType,
    QuizSubmission,
    QuizSubmissionCreate,
    SubmissionStatus,
    TextAnswer,
    utcnow,
)
from . import live
from .common import detach, store_errors, unit_of_work
from .round_ledger import mark_round_completed
from .state_machine import Event, transition

QUIZ_ROUND = 2
POINTS_PER_QUESTION = 1.0

# keys used for the student's answer over time, most specific first
_ANSWER_KEYS = ("userAnswer", "user_answer", "answer", "textAnswer", "text_answer")


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _question_type(raw: Dict[str, Any], bank_question: Optional[Dict[str, Any]]) -> QuestionType:
    value = _first(raw, "type", "questionType", "question_type")
    if value is None and bank_question:
        value = bank_question.get("type")
    try:
        return QuestionType(value or QuestionType.TEXT.value)
    except ValueError:
        raise ValidationError(f"Unknown question type: {value}")


def normalize_question_record(
    raw: Dict[str, Any],
    index: int,
    bank_question: Optional[Dict[str, Any]] = None
) -> QuestionRecord:
    """
    Canonical record for one answered question

    bank_question (the matching stored test question) fills in the prompt,
    options and correct answer when the payload omits them.
    """
    bank_question = bank_question or {}
    qtype = _question_type(raw, bank_question)
    options = raw.get("options") or bank_question.get("options") or []
    prompt = _first(raw, "question", "text") or bank_question.get("question") or f"Question {index + 1}"
    correct = _first(raw, "correctAnswer", "correct_answer", "correctOption")
    if correct is None:
        correct = bank_question.get("correct_answer")

    given = _first(raw, *_ANSWER_KEYS)
    if qtype is QuestionType.MCQ:
        # the answer text wins; -1 is the old "no index" marker
        selected = None
        if isinstance(given, str) and given in options:
            selected = options.index(given)
        if selected is None:
            marker = _first(raw, "selectedOption", "selected_option", "selected_index")
            if marker is None and isinstance(given, int):
                marker = given
            if isinstance(marker, int) and marker >= 0:
                selected = marker
        answer = McqAnswer(selected_index=selected)
    else:
        answer = TextAnswer(text="" if given is None else str(given))

    return QuestionRecord(
        question_id=_first(raw, "id", "questionId", "question_id"),
        question=str(prompt),
        type=qtype,
        options=list(options),
        answer=answer,
        correct_answer=correct,
    )


def grade(record: QuestionRecord) -> QuestionRecord:
    """MCQ by option index, text by case-insensitive match; one point each"""
    if record.correct_answer is None:
        is_correct = None
    elif isinstance(record.answer, McqAnswer):
        expected = record.correct_answer
        if isinstance(expected, str) and expected in record.options:
            expected = record.options.index(expected)
        is_correct = record.answer.selected_index is not None and record.answer.selected_index == expected
    else:
        is_correct = record.answer.text.strip().lower() == str(record.correct_answer).strip().lower()

    return record.model_copy(update={
        "is_correct": is_correct,
        "points": POINTS_PER_QUESTION if is_correct else 0.0,
    })


def _bank_lookup(questions: List[dict]) -> Dict[Any, dict]:
    return {q.get("id"): q for q in questions or []}


@store_errors
async def record_quiz_submission(db: AsyncSession, payload: QuizSubmissionCreate) -> QuizSubmission:
    """
    Store a finished quiz and move the pipeline to quiz_completed

    Creates the submission, completes the assignment and updates the
    application in one transaction.
    """
    if not payload.question_data:
        raise ValidationError("A quiz submission needs at least one answered question")

    async with unit_of_work(db):
        application = await application_crud.get_in_internship(
            db, payload.internship_id, payload.application_id, for_update=True
        )
        if application is None:
            raise NotFoundError("Application not found")
        next_status = transition(application.status, Event.COMPLETE_QUIZ)

        assignment = await assignment_crud.get_by_application(db, application.id)
        if assignment is None:
            raise NotFoundError("Test assignment not found")
        if assignment.status not in (AssignmentStatus.ASSIGNED.value, AssignmentStatus.IN_PROGRESS.value):
            raise InvalidStateError(f"Cannot submit quiz for test with status: {assignment.status}")

        test = await test_crud.get(db, assignment.test_id)
        if test is None:
            raise NotFoundError("Test not found")

        bank = _bank_lookup(test.questions)
        records = []
        for index, raw in enumerate(payload.question_data):
            bank_question = bank.get(raw.get("id") or raw.get("questionId"))
            records.append(grade(normalize_question_record(raw, index, bank_question)))

        score = sum(r.points for r in records)
        total = POINTS_PER_QUESTION * max(len(test.questions), len(records))
        percentage = round(score / total * 100, 2) if total else 0.0
        now = utcnow()

        submission = QuizSubmission(
            application_id=application.id,
            student_id=application.student_id,
            internship_id=application.internship_id,
            test_id=assignment.test_id,
            question_data=[r.model_dump(mode="json") for r in records],
            score=score,
            total_possible_points=total,
            percentage=percentage,
            submitted_at=now,
            status=SubmissionStatus.PENDING.value,
        )
        db.add(submission)
        await db.flush()

        await assignment_crud.update(db, db_obj=assignment, obj_in={
            "status": AssignmentStatus.COMPLETED.value,
            "completed_at": now,
            "score": score,
            "answers": [r.answer.model_dump(mode="json") for r in records],
            "updated_at": now,
        })
        await application_crud.update(db, db_obj=application, obj_in={
            "status": next_status.value,
            "quiz_submission_id": submission.id,
            "quiz_score": score,
            "quiz_completed_at": now,
            "rounds": mark_round_completed(application.rounds, QUIZ_ROUND, now),
            "updated_at": now,
        })
        await db.refresh(submission)

    detach(db, submission, assignment, application)
    logger.info(
        f"Quiz submission {submission.id} recorded for application {application.id}: "
        f"{score}/{total} ({percentage}%)"
    )
    await live.publish(
        db, Collection.APPLICATIONS, Collection.TEST_ASSIGNMENTS, Collection.QUIZ_SUBMISSIONS
    )
    return submission
