"""
Test model - reusable question bank, tests/{testId}
"""
from enum import Enum
from typing import List, Optional, Union
from sqlmodel import SQLModel, Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class QuestionType(str, Enum):
    MCQ = "mcq"
    TEXT = "text"


class TestStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class TestQuestion(SQLModelBase):
    """
    A question of the bank

    correct_answer is an option index for mcq and free text otherwise.
    Wire payloads use the camelCase aliases.
    """
    __test__ = False

    id: int = Field(..., description="Question number")
    type: QuestionType
    question: str = Field(..., min_length=1)
    options: Optional[List[str]] = None
    correct_answer: Optional[Union[int, str]] = Field(None, alias="correctAnswer")
    time_allowed: int = Field(..., gt=0, alias="timeAllowed", description="Minutes")


class Test(TimestampMixin, IDMixin, SQLModel, table=True):
    """Question bank"""
    __tablename__ = "tests"
    __test__ = False

    title: str = Field(..., min_length=1, max_length=200, index=True)
    description: Optional[str] = None
    questions: List[dict] = Field(default_factory=list, sa_column=Column(JSON), description="Validated questions")
    duration: int = Field(0, ge=0, description="Minutes")
    status: str = Field(TestStatus.ACTIVE.value, index=True)
    created_by: Optional[str] = None

    def __repr__(self) -> str:
        return f"<Test(id={self.id}, title={self.title})>"


class TestCreate(SQLModelBase):
    """
    Create a test

    questions may be a JSON string (as typed into the admin form) or a list.
    """
    __test__ = False

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    questions: Union[str, List[dict]] = Field(..., description="JSON string or list of questions")
    duration: int = Field(0, ge=0)


class TestResponse(TimestampResponse):
    __test__ = False

    title: str
    description: Optional[str] = None
    questions: List[TestQuestion] = []
    duration: int
    status: str
    created_by: Optional[str] = None
