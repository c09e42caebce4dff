"""
Test bank

Admins author tests as a JSON array of questions. Every question is checked
before the test is stored; stored questions use the snake_case field names.
"""
import json
from typing import List, Optional, Union

from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.core.exceptions import NotFoundError, ValidationError
from internbooth.crud import test_crud
from internbooth.models import QuestionType, Test, TestCreate, TestQuestion, TestStatus
from .common import require_actor, store_errors, unit_of_work


class QuestionFormatError(ValueError):
    pass


def _describe(question) -> str:
    return json.dumps(question, ensure_ascii=False, default=str)


def _check_question(question) -> TestQuestion:
    if not isinstance(question, dict):
        raise QuestionFormatError(f"Invalid question format: {_describe(question)}")

    for key in ("id", "type", "question", "timeAllowed"):
        if not question.get(key):
            raise QuestionFormatError(f"Invalid question format: {_describe(question)}")

    if question["type"] == QuestionType.MCQ.value:
        options = question.get("options")
        if not isinstance(options, list) or len(options) < 2:
            raise QuestionFormatError(f"MCQ question must have at least 2 options: {_describe(question)}")

        correct = question.get("correctAnswer")
        if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct < len(options):
            raise QuestionFormatError(f"MCQ question must have a valid correctAnswer index: {_describe(question)}")

    try:
        return TestQuestion.model_validate(question)
    except PydanticValidationError as exc:
        raise QuestionFormatError(f"Invalid question format: {_describe(question)}") from exc


def parse_questions(raw: Union[str, List[dict]]) -> List[dict]:
    """
    Validate a question bank given as a JSON string or a list

    Returns the questions as plain dicts ready for storage.
    """
    try:
        questions = json.loads(raw) if isinstance(raw, str) else raw
        if not isinstance(questions, list):
            raise QuestionFormatError("questions must be a JSON array")
        parsed = [_check_question(q) for q in questions]
    except (QuestionFormatError, json.JSONDecodeError) as exc:
        raise ValidationError(f"Invalid questions format: {exc}")

    return [q.model_dump(mode="json") for q in parsed]


@store_errors
async def create_test(db: AsyncSession, payload: TestCreate, actor: Optional[str]) -> Test:
    actor = require_actor(actor)
    questions = parse_questions(payload.questions)

    async with unit_of_work(db):
        test = await test_crud.create(db, obj_in={
            "title": payload.title,
            "description": payload.description,
            "questions": questions,
            "duration": payload.duration,
            "status": TestStatus.ACTIVE.value,
            "created_by": actor,
        })

    logger.info(f"Test {test.id} '{test.title}' created by {actor} with {len(questions)} questions")
    return test


async def get_test(db: AsyncSession, test_id: str) -> Test:
    test = await test_crud.get(db, test_id)
    if test is None:
        raise NotFoundError("Test not found")
    return test


async def list_tests(db: AsyncSession, status: Optional[str] = None) -> List[Test]:
    if status:
        return await test_crud.get_by_status(db, status)
    return await test_crud.get_all(db)
