"""
SQLModel models

Table models and their request/response schemas
"""
from .base import SQLModelBase, TimestampMixin, utcnow
from .reference import (
    Student, StudentCreate, StudentResponse,
    Internship, InternshipCreate, InternshipResponse, InternshipStatus,
)
from .application import (
    Application, ApplicationStatus, RoundStatus, ApplicationRound,
    ApplicationCreate, DecisionRequest, ApplicationResponse,
)
from .assignment import (
    TestAssignment, AssignmentStatus, REVIEWED_STATUSES, assignment_key,
    TestAssignmentCreate, BulkAssignRequest, ApproveRequest, RejectRequest,
    TestAssignmentResponse,
)
from .question_bank import (
    Test, TestStatus, QuestionType, TestQuestion, TestCreate, TestResponse,
)
from .submission import (
    QuizSubmission, SubmissionStatus, McqAnswer, TextAnswer, QuestionRecord,
    QuizSubmissionCreate, QuizSubmissionResponse,
)

__all__ = [
    # Base
    "SQLModelBase",
    "TimestampMixin",
    "utcnow",
    # Reference documents
    "Student",
    "StudentCreate",
    "StudentResponse",
    "Internship",
    "InternshipCreate",
    "InternshipResponse",
    "InternshipStatus",
    # Application
    "Application",
    "ApplicationStatus",
    "RoundStatus",
    "ApplicationRound",
    "ApplicationCreate",
    "DecisionRequest",
    "ApplicationResponse",
    # Test assignment
    "TestAssignment",
    "AssignmentStatus",
    "REVIEWED_STATUSES",
    "assignment_key",
    "TestAssignmentCreate",
    "BulkAssignRequest",
    "ApproveRequest",
    "RejectRequest",
    "TestAssignmentResponse",
    # Question bank
    "Test",
    "TestStatus",
    "QuestionType",
    "TestQuestion",
    "TestCreate",
    "TestResponse",
    # Quiz submission
    "QuizSubmission",
    "SubmissionStatus",
    "McqAnswer",
    "TextAnswer",
    "QuestionRecord",
    "QuizSubmissionCreate",
    "QuizSubmissionResponse",
]
