"""
Test bank API routes
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.api.deps import get_actor
from internbooth.core.database import get_db
from internbooth.core.response import success_response, ResponseModel, DictResponse
from internbooth.models import TestCreate, TestResponse
from internbooth import services

router = APIRouter()


@router.post("", summary="Create a test", response_model=ResponseModel[TestResponse])
async def create_test(
    data: TestCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    test = await services.create_test(db, data, actor)
    return success_response(data=TestResponse.model_validate(test).model_dump(), message="Test created")


@router.get("", summary="List tests", response_model=DictResponse)
async def get_tests(
    status: Optional[str] = Query(None, description="Filter by status"),
    db: AsyncSession = Depends(get_db),
):
    tests = await services.list_tests(db, status)
    return success_response(data={
        "items": [TestResponse.model_validate(t).model_dump() for t in tests],
        "total": len(tests),
    })


@router.get("/{test_id}", summary="Get a test", response_model=ResponseModel[TestResponse])
async def get_test(
    test_id: str,
    db: AsyncSession = Depends(get_db),
):
    test = await services.get_test(db, test_id)
    return success_response(data=TestResponse.model_validate(test).model_dump())
