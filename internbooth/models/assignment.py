"""
Test assignment model - testsAssigned/{assignmentId}

At most one assignment exists per application. The primary key is derived
from the application id and application_id carries a unique constraint, so
a second insert for the same application fails in the store itself.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from sqlmodel import SQLModel, Field, Column, JSON, UniqueConstraint

from .base import SQLModelBase, TimestampMixin, TimestampResponse, utcnow


class AssignmentStatus(str, Enum):
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    APPROVED = "approved"
    REJECTED = "rejected"


REVIEWED_STATUSES = frozenset({AssignmentStatus.APPROVED.value, AssignmentStatus.REJECTED.value})


def assignment_key(application_id: str) -> str:
    """Deterministic document key for an application's assignment"""
    return f"ta-{application_id}"


class TestAssignment(TimestampMixin, SQLModel, table=True):
    """Links a student, a test and an application for one quiz round"""
    __tablename__ = "tests_assigned"
    __table_args__ = (
        UniqueConstraint("application_id", name="uq_test_assignment_application"),
    )
    __test__ = False

    id: str = Field(..., primary_key=True, description="Assignment ID")
    application_id: str = Field(..., index=True, description="Application ID")
    student_id: str = Field(..., index=True, description="Student ID")
    internship_id: str = Field(..., index=True, description="Internship ID")
    test_id: str = Field(..., index=True, description="Test ID")

    status: str = Field(AssignmentStatus.ASSIGNED.value, index=True, description="Assignment status")
    assigned_at: datetime = Field(default_factory=utcnow)
    assigned_by: str = Field(..., description="Admin who assigned the test")
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    feedback: Optional[str] = None
    score: Optional[float] = None
    answers: Optional[list] = Field(default=None, sa_column=Column(JSON), description="Canonical answers")

    def __repr__(self) -> str:
        return f"<TestAssignment(id={self.id}, status={self.status})>"


# ==================== Request schemas ====================

class TestAssignmentCreate(SQLModelBase):
    """Assign a test to one application"""
    __test__ = False

    internship_id: str = Field(..., min_length=1)
    application_id: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)
    test_id: str = Field(..., min_length=1)


class BulkAssignRequest(SQLModelBase):
    """Assign one test to several students of an internship"""
    internship_id: str = Field(..., min_length=1)
    test_id: str = Field(..., min_length=1)
    student_ids: List[str] = Field(..., min_length=1)


class ApproveRequest(SQLModelBase):
    feedback: Optional[str] = Field(None, description="Optional reviewer feedback")
    advance_to_next_round: bool = Field(True, description="False selects the candidate")


class RejectRequest(SQLModelBase):
    feedback: str = Field("", description="Required reviewer feedback")


# ==================== Response schemas ====================

class TestAssignmentResponse(TimestampResponse):
    __test__ = False

    application_id: str
    student_id: str
    internship_id: str
    test_id: str
    status: str
    assigned_at: Optional[datetime] = None
    assigned_by: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    feedback: Optional[str] = None
    score: Optional[float] = None
    answers: Optional[list] = None
