"""
Application API routes

Applications are addressed under their internship; /applications is the
cross-internship read listing.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.api.deps import get_actor
from internbooth.core.database import get_db
from internbooth.core.response import (
    success_response,
    paged_response,
    ResponseModel,
    PagedResponseModel,
)
from internbooth.models import ApplicationCreate, ApplicationResponse, DecisionRequest
from internbooth import services

router = APIRouter()
internship_router = APIRouter()


def _dump(application) -> dict:
    return ApplicationResponse.model_validate(application).model_dump()


async def _paged(db, internship_id, status, page, page_size):
    skip = (page - 1) * page_size
    applications, total = await services.list_applications(
        db, internship_id, status, skip=skip, limit=page_size
    )
    return paged_response([_dump(a) for a in applications], total, page, page_size)


@router.get("", summary="List applications across internships", response_model=PagedResponseModel[ApplicationResponse])
async def get_all_applications(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    status: Optional[str] = Query(None, description="Filter by status"),
    db: AsyncSession = Depends(get_db),
):
    return await _paged(db, None, status, page, page_size)


@internship_router.get(
    "/{internship_id}/applications",
    summary="List applications of an internship",
    response_model=PagedResponseModel[ApplicationResponse],
)
async def get_internship_applications(
    internship_id: str,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    status: Optional[str] = Query(None, description="Filter by status"),
    db: AsyncSession = Depends(get_db),
):
    return await _paged(db, internship_id, status, page, page_size)


@internship_router.post(
    "/{internship_id}/applications",
    summary="Apply to an internship",
    response_model=ResponseModel[ApplicationResponse],
)
async def create_application(
    internship_id: str,
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    application = await services.submit_application(db, internship_id, data, actor)
    return success_response(data=_dump(application), message="Application submitted")


@internship_router.get(
    "/{internship_id}/applications/{application_id}",
    summary="Get an application",
    response_model=ResponseModel[ApplicationResponse],
)
async def get_application(
    internship_id: str,
    application_id: str,
    db: AsyncSession = Depends(get_db),
):
    application = await services.get_application(db, internship_id, application_id)
    return success_response(data=_dump(application))


# ==================== Round decisions ====================

@internship_router.post(
    "/{internship_id}/applications/{application_id}/round1/approve",
    summary="Approve the round 1 form",
    response_model=ResponseModel[ApplicationResponse],
)
async def approve_round1(
    internship_id: str,
    application_id: str,
    data: DecisionRequest,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    application = await services.proceed_to_round2(db, internship_id, application_id, actor, data.feedback)
    return success_response(data=_dump(application), message="Form approved, eligible for Round 2")


@internship_router.post(
    "/{internship_id}/applications/{application_id}/round1/reject",
    summary="Reject the round 1 form",
    response_model=ResponseModel[ApplicationResponse],
)
async def reject_round1(
    internship_id: str,
    application_id: str,
    data: DecisionRequest,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    application = await services.reject_round1(db, internship_id, application_id, actor, data.feedback)
    return success_response(data=_dump(application), message="Form rejected")


@internship_router.post(
    "/{internship_id}/applications/{application_id}/round2/select",
    summary="Select the candidate after the quiz round",
    response_model=ResponseModel[ApplicationResponse],
)
async def select_round2(
    internship_id: str,
    application_id: str,
    data: DecisionRequest,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    application = await services.select_after_round2(db, internship_id, application_id, actor, data.feedback)
    return success_response(data=_dump(application), message="Candidate selected")


@internship_router.post(
    "/{internship_id}/applications/{application_id}/round2/reject",
    summary="Reject the candidate after the quiz round",
    response_model=ResponseModel[ApplicationResponse],
)
async def reject_round2(
    internship_id: str,
    application_id: str,
    data: DecisionRequest,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    application = await services.reject_after_round2(db, internship_id, application_id, actor, data.feedback)
    return success_response(data=_dump(application), message="Candidate rejected")
