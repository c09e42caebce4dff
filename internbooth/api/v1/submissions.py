"""
Quiz submission API routes
"""
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.api.deps import get_actor
from internbooth.core.database import get_db
from internbooth.core.exceptions import NotFoundError
from internbooth.core.response import success_response, ResponseModel
from internbooth.crud import submission_crud
from internbooth.models import QuizSubmissionCreate, QuizSubmissionResponse
from internbooth.services import record_quiz_submission
from internbooth.services.common import require_actor

router = APIRouter()


@router.post("", summary="Record a finished quiz", response_model=ResponseModel[QuizSubmissionResponse])
async def create_submission(
    data: QuizSubmissionCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    require_actor(actor)
    submission = await record_quiz_submission(db, data)
    return success_response(
        data=QuizSubmissionResponse.model_validate(submission).model_dump(),
        message="Quiz submitted",
    )


@router.get("/{submission_id}", summary="Get a quiz submission", response_model=ResponseModel[QuizSubmissionResponse])
async def get_submission(
    submission_id: str,
    db: AsyncSession = Depends(get_db),
):
    submission = await submission_crud.get(db, submission_id)
    if not submission:
        raise NotFoundError("Quiz submission not found")
    return success_response(data=QuizSubmissionResponse.model_validate(submission).model_dump())
