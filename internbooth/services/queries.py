"""
Read aggregates for the admin console
"""
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.core.exceptions import NotFoundError
from internbooth.crud import (
    application_crud,
    assignment_crud,
    student_crud,
    submission_crud,
    test_crud,
)
from internbooth.models import Application, AssignmentStatus, TestAssignment
from .common import require_actor


async def get_test_assignment_details(
    db: AsyncSession,
    assignment_id: str,
    actor: Optional[str]
) -> Dict[str, Any]:
    """
    Assignment together with its test, student and application

    The linked quiz submission is included when one exists.
    """
    require_actor(actor)

    assignment = await assignment_crud.get(db, assignment_id)
    if assignment is None:
        raise NotFoundError("Test assignment not found")

    test = await test_crud.get(db, assignment.test_id)
    if test is None:
        raise NotFoundError("Test not found")

    student = await student_crud.get(db, assignment.student_id)
    if student is None:
        raise NotFoundError("Student not found")

    application = await application_crud.get_in_internship(
        db, assignment.internship_id, assignment.application_id
    )
    if application is None:
        raise NotFoundError("Application not found")

    submission = None
    if application.quiz_submission_id:
        submission = await submission_crud.get(db, application.quiz_submission_id)

    return {
        "assignment": assignment,
        "test": test,
        "student": student,
        "application": application,
        "submission": submission,
    }


async def get_pending_test_reviews(
    db: AsyncSession,
    actor: Optional[str],
    *,
    skip: int = 0,
    limit: int = 100
) -> List[TestAssignment]:
    """Completed assignments waiting for a decision, oldest completion first"""
    require_actor(actor)
    return await assignment_crud.get_by_status(
        db, AssignmentStatus.COMPLETED.value, skip=skip, limit=limit
    )


async def list_applications(
    db: AsyncSession,
    internship_id: Optional[str] = None,
    status: Optional[str] = None,
    *,
    skip: int = 0,
    limit: int = 100
) -> Tuple[List[Application], int]:
    """Applications of one internship, or across all internships when none is given"""
    if internship_id:
        items = await application_crud.get_by_internship(
            db, internship_id, status=status, skip=skip, limit=limit
        )
        total = await application_crud.count_by_internship(db, internship_id, status=status)
    else:
        items = await application_crud.get_flat(db, status=status, skip=skip, limit=limit)
        total = await application_crud.count_flat(db, status=status)
    return items, total


async def get_application(db: AsyncSession, internship_id: str, application_id: str) -> Application:
    application = await application_crud.get_in_internship(db, internship_id, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    return application
