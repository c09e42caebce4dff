"""
Test bank parsing and creation
"""
import json

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import ADMIN, SAMPLE_QUESTIONS
from internbooth.core.exceptions import AuthRequiredError, ValidationError
from internbooth.models import TestCreate
from internbooth.services import create_test, list_tests, parse_questions


def test_parse_accepts_json_string_and_list():
    from_string = parse_questions(json.dumps(SAMPLE_QUESTIONS))
    from_list = parse_questions(SAMPLE_QUESTIONS)

    assert from_string == from_list
    assert from_list[0]["correct_answer"] == 1
    assert from_list[0]["time_allowed"] == 2
    assert from_list[1]["type"] == "text"


@pytest.mark.parametrize("question, reason", [
    ({"id": 1, "type": "text", "question": "Q"}, "Invalid question format"),
    ({"id": 1, "type": "mcq", "question": "Q", "timeAllowed": 1, "options": ["a"], "correctAnswer": 0},
     "MCQ question must have at least 2 options"),
    ({"id": 1, "type": "mcq", "question": "Q", "timeAllowed": 1, "options": ["a", "b"], "correctAnswer": 2},
     "MCQ question must have a valid correctAnswer index"),
    ({"id": 1, "type": "mcq", "question": "Q", "timeAllowed": 1, "options": ["a", "b"], "correctAnswer": "a"},
     "MCQ question must have a valid correctAnswer index"),
])
def test_parse_rejects_malformed_questions(question, reason):
    with pytest.raises(ValidationError) as exc:
        parse_questions([question])
    assert exc.value.message.startswith("Invalid questions format: ")
    assert reason in exc.value.message


def test_parse_rejects_broken_json():
    with pytest.raises(ValidationError):
        parse_questions("[{not json")
    with pytest.raises(ValidationError):
        parse_questions('{"id": 1}')


async def test_create_test_stores_validated_questions(db_session: AsyncSession):
    test = await create_test(
        db_session,
        TestCreate(title="Python basics", description="Screening", questions=json.dumps(SAMPLE_QUESTIONS), duration=10),
        ADMIN,
    )

    assert test.status == "active"
    assert test.created_by == ADMIN
    assert len(test.questions) == 2
    assert [t.id for t in await list_tests(db_session, "active")] == [test.id]


async def test_create_test_requires_actor(db_session: AsyncSession):
    with pytest.raises(AuthRequiredError):
        await create_test(db_session, TestCreate(title="x", questions=SAMPLE_QUESTIONS), None)
