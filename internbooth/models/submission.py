"""
Quiz submission model - quizSubmissions/{submissionId}

question_data holds canonical QuestionRecord dicts; the historical payload
shapes are normalised once at ingestion (services.submission).
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, Field as PydanticField
from sqlmodel import SQLModel, Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utcnow
from .question_bank import QuestionType


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ==================== Canonical answers ====================

class McqAnswer(BaseModel):
    """Answer to a multiple-choice question"""
    type: Literal["mcq"] = "mcq"
    selected_index: Optional[int] = None


class TextAnswer(BaseModel):
    """Answer to a free-text question"""
    type: Literal["text"] = "text"
    text: str = ""


Answer = Annotated[Union[McqAnswer, TextAnswer], PydanticField(discriminator="type")]


class QuestionRecord(BaseModel):
    """One graded question of a submission"""
    question_id: Optional[Union[int, str]] = None
    question: str
    type: QuestionType
    options: List[str] = []
    answer: Answer
    correct_answer: Optional[Union[int, str]] = None
    is_correct: Optional[bool] = None
    points: float = 0.0


# ==================== Table model ====================

class QuizSubmission(TimestampMixin, IDMixin, SQLModel, table=True):
    """A completed quiz attempt"""
    __tablename__ = "quiz_submissions"

    application_id: str = Field(..., index=True, description="Application ID")
    student_id: str = Field(..., index=True)
    internship_id: str = Field(..., index=True)
    test_id: str = Field(..., index=True)
    question_data: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    score: float = Field(0.0, ge=0)
    total_possible_points: float = Field(0.0, ge=0)
    percentage: float = Field(0.0, ge=0, le=100)
    submitted_at: datetime = Field(default_factory=utcnow)

    status: str = Field(SubmissionStatus.PENDING.value, index=True)
    feedback: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    evaluated_at: Optional[datetime] = None

    def __repr__(self) -> str:
        return f"<QuizSubmission(id={self.id}, status={self.status})>"


# ==================== Request schemas ====================

class QuizSubmissionCreate(SQLModelBase):
    """
    Student-facing quiz flow hands over its answers

    question_data items may use any historical shape, e.g.
    {"id": 1, "userAnswer": "B"} or {"id": 2, "user_answer": "text"}.
    """
    internship_id: str = Field(..., min_length=1)
    application_id: str = Field(..., min_length=1)
    question_data: List[dict] = Field(default_factory=list)


# ==================== Response schemas ====================

class QuizSubmissionResponse(TimestampResponse):
    application_id: str
    student_id: str
    internship_id: str
    test_id: str
    question_data: List[QuestionRecord] = []
    score: float
    total_possible_points: float
    percentage: float
    submitted_at: Optional[datetime] = None
    status: str
    feedback: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    evaluated_at: Optional[datetime] = None
