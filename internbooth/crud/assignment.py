"""
Test assignment CRUD
"""
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.models.assignment import TestAssignment
from .base import CRUDBase


class CRUDTestAssignment(CRUDBase[TestAssignment]):

    async def get_by_application(
        self,
        db: AsyncSession,
        application_id: str
    ) -> Optional[TestAssignment]:
        """At most one assignment per application"""
        result = await db.execute(
            select(self.model).where(self.model.application_id == application_id)
        )
        return result.scalar_one_or_none()

    async def get_by_status(
        self,
        db: AsyncSession,
        status: str,
        *,
        skip: int = 0,
        limit: int = 100
    ) -> List[TestAssignment]:
        result = await db.execute(
            select(self.model)
            .where(self.model.status == status)
            .order_by(self.model.completed_at.asc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())


assignment_crud = CRUDTestAssignment(TestAssignment)
