"""
Application model - one per (student, internship) pair

The canonical location is internships/{internshipId}/applications/{id};
the flat applications listing is a cross-internship query over the same
table, never a second writable copy.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from sqlmodel import SQLModel, Field, Column, JSON, UniqueConstraint

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utcnow


class ApplicationStatus(str, Enum):
    """Pipeline stage of an application"""
    FORM_PENDING = "form_pending"          # student applied, form not yet sent
    FORM_SUBMITTED = "form_submitted"      # round 1 form submitted
    FORM_APPROVED = "form_approved"        # round 1 passed, eligible for a quiz
    TEST_ASSIGNED = "test_assigned"        # round 2 quiz assigned
    QUIZ_COMPLETED = "quiz_completed"      # round 2 quiz submitted
    QUIZ_APPROVED = "quiz_approved"
    QUIZ_REJECTED = "quiz_rejected"
    REJECTED_ROUND1 = "rejected_round1"
    SELECTED = "selected"
    REJECTED = "rejected"
    # legacy values, accepted on read only
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    SHORTLISTED = "shortlisted"
    TEST_COMPLETED = "test_completed"
    TEST_APPROVED = "test_approved"
    TEST_REJECTED = "test_rejected"


class RoundStatus(str, Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


# ==================== Nested schema ====================

class ApplicationRound(SQLModelBase):
    """One entry of the round ledger"""
    round_number: int = Field(..., ge=1, description="Round number")
    status: RoundStatus = Field(RoundStatus.PENDING, description="Round outcome")
    test_assignment_id: Optional[str] = None
    feedback: Optional[str] = None
    completed_at: Optional[datetime] = None
    evaluated_at: Optional[datetime] = None
    evaluated_by: Optional[str] = None


# ==================== Table model ====================

class Application(TimestampMixin, IDMixin, SQLModel, table=True):
    """internships/{internshipId}/applications/{applicationId}"""
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("student_id", "internship_id", name="uq_application_student_internship"),
    )

    internship_id: str = Field(..., index=True, description="Internship ID")
    student_id: str = Field(..., index=True, description="Student ID")
    student_name: Optional[str] = Field(None, description="Denormalised student name")
    student_email: Optional[str] = Field(None, description="Denormalised student email")

    status: str = Field(ApplicationStatus.FORM_SUBMITTED.value, index=True, description="Pipeline status")
    current_round: int = Field(1, ge=1, description="Round in progress or last evaluated")
    rounds: List[dict] = Field(default_factory=list, sa_column=Column(JSON), description="Round ledger")

    # back-references to the current round's artifacts
    test_assignment_id: Optional[str] = Field(None, description="Active test assignment")
    test_id: Optional[str] = Field(None, description="Assigned test")
    test_assigned_at: Optional[datetime] = None
    quiz_submission_id: Optional[str] = Field(None, description="Linked quiz submission")
    quiz_score: Optional[float] = None
    quiz_completed_at: Optional[datetime] = None

    applied_at: datetime = Field(default_factory=utcnow)
    selected_at: Optional[datetime] = None

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, status={self.status}, round={self.current_round})>"


# ==================== Request schemas ====================

class ApplicationCreate(SQLModelBase):
    """Student applies to an internship"""
    student_id: str = Field(..., min_length=1, description="Student ID")


class DecisionRequest(SQLModelBase):
    """Round decision taken by an admin"""
    feedback: Optional[str] = Field(None, description="Evaluator feedback")


# ==================== Response schemas ====================

class ApplicationResponse(TimestampResponse):
    internship_id: str
    student_id: str
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    status: str
    current_round: int
    rounds: List[ApplicationRound] = []
    test_assignment_id: Optional[str] = None
    test_id: Optional[str] = None
    test_assigned_at: Optional[datetime] = None
    quiz_submission_id: Optional[str] = None
    quiz_score: Optional[float] = None
    quiz_completed_at: Optional[datetime] = None
    applied_at: Optional[datetime] = None
    selected_at: Optional[datetime] = None
