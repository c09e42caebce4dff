"""
Pipeline protocols

Every write goes through one of these functions; routes never touch the
CRUD layer for mutations.
"""
from .application import submit_application
from .assignment import (
    BulkAssignResult,
    assign_test,
    bulk_assign_tests,
    delete_test_assignment,
    start_test_assignment,
)
from .submission import record_quiz_submission, normalize_question_record, grade
from .review import (
    ReviewOutcome,
    approve_test_result,
    reject_test_result,
    proceed_to_round2,
    reject_round1,
    select_after_round2,
    reject_after_round2,
)
from .queries import (
    get_application,
    get_pending_test_reviews,
    get_test_assignment_details,
    list_applications,
)
from .question_bank import create_test, get_test, list_tests, parse_questions
from .live import on_applications_change, on_test_assignments_change, on_quiz_submissions_change

__all__ = [
    "submit_application",
    "BulkAssignResult",
    "assign_test",
    "bulk_assign_tests",
    "delete_test_assignment",
    "start_test_assignment",
    "record_quiz_submission",
    "normalize_question_record",
    "grade",
    "ReviewOutcome",
    "approve_test_result",
    "reject_test_result",
    "proceed_to_round2",
    "reject_round1",
    "select_after_round2",
    "reject_after_round2",
    "get_application",
    "get_pending_test_reviews",
    "get_test_assignment_details",
    "list_applications",
    "create_test",
    "get_test",
    "list_tests",
    "parse_questions",
    "on_applications_change",
    "on_test_assignments_change",
    "on_quiz_submissions_change",
]
