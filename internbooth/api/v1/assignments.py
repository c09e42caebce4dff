"""
Test assignment API routes
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.api.deps import get_actor
from internbooth.core.database import get_db
from internbooth.core.response import (
    success_response,
    ResponseModel,
    DictResponse,
)
from internbooth.models import (
    ApplicationResponse,
    ApproveRequest,
    BulkAssignRequest,
    QuizSubmissionResponse,
    RejectRequest,
    StudentResponse,
    TestAssignmentCreate,
    TestAssignmentResponse,
    TestResponse,
)
from internbooth import services

router = APIRouter()


def _dump(assignment) -> dict:
    return TestAssignmentResponse.model_validate(assignment).model_dump()


def _outcome(outcome) -> dict:
    return {
        "assignment": _dump(outcome.assignment),
        "application": ApplicationResponse.model_validate(outcome.application).model_dump(),
    }


@router.post("", summary="Assign a test", response_model=ResponseModel[TestAssignmentResponse])
async def create_assignment(
    data: TestAssignmentCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    assignment = await services.assign_test(db, data, actor)
    return success_response(data=_dump(assignment), message="Test assigned")


@router.post("/bulk", summary="Assign a test to several students", response_model=DictResponse)
async def bulk_create_assignments(
    data: BulkAssignRequest,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    """
    Each student is processed on its own; failures are reported per student
    """
    result = await services.bulk_assign_tests(db, data.internship_id, data.test_id, data.student_ids, actor)
    return success_response(
        data={
            "success": result.succeeded,
            "failed": result.failed,
            "errors": result.errors,
            "assignment_ids": result.assignment_ids,
        },
        message=f"{result.succeeded} assigned, {result.failed} failed",
    )


@router.get("/pending", summary="Completed tests awaiting review", response_model=DictResponse)
async def get_pending_reviews(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    assignments = await services.get_pending_test_reviews(db, actor, skip=skip, limit=limit)
    return success_response(data={"items": [_dump(a) for a in assignments], "total": len(assignments)})


@router.get("/{assignment_id}", summary="Assignment with its test, student and application", response_model=DictResponse)
async def get_assignment_details(
    assignment_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    details = await services.get_test_assignment_details(db, assignment_id, actor)
    submission = details["submission"]
    return success_response(data={
        "assignment": _dump(details["assignment"]),
        "test": TestResponse.model_validate(details["test"]).model_dump(),
        "student": StudentResponse.model_validate(details["student"]).model_dump(),
        "application": ApplicationResponse.model_validate(details["application"]).model_dump(),
        "submission": QuizSubmissionResponse.model_validate(submission).model_dump() if submission else None,
    })


@router.post("/{assignment_id}/start", summary="Start a test", response_model=ResponseModel[TestAssignmentResponse])
async def start_assignment(
    assignment_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    assignment = await services.start_test_assignment(db, assignment_id, actor)
    return success_response(data=_dump(assignment), message="Test started")


@router.post("/{assignment_id}/approve", summary="Approve a completed test", response_model=DictResponse)
async def approve_assignment(
    assignment_id: str,
    data: ApproveRequest,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    outcome = await services.approve_test_result(
        db, assignment_id, actor,
        feedback=data.feedback,
        advance_to_next_round=data.advance_to_next_round,
    )
    return success_response(data=_outcome(outcome), message="Test approved")


@router.post("/{assignment_id}/reject", summary="Reject a completed test", response_model=DictResponse)
async def reject_assignment(
    assignment_id: str,
    data: RejectRequest,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    outcome = await services.reject_test_result(db, assignment_id, data.feedback, actor)
    return success_response(data=_outcome(outcome), message="Test rejected")


@router.delete("/{assignment_id}", summary="Withdraw a test assignment", response_model=DictResponse)
async def delete_assignment(
    assignment_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    deleted_id = await services.delete_test_assignment(db, assignment_id, actor)
    return success_response(data={"id": deleted_id}, message="Test assignment deleted")
