"""
Application CRUD
"""
from typing import Optional, List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.models.application import Application
from .base import CRUDBase


class CRUDApplication(CRUDBase[Application]):
    """Applications live under their internship; lookups are internship-scoped"""

    async def get_in_internship(
        self,
        db: AsyncSession,
        internship_id: str,
        id: str,
        *,
        for_update: bool = False
    ) -> Optional[Application]:
        """internships/{internship_id}/applications/{id}"""
        query = select(self.model).where(
            self.model.id == id,
            self.model.internship_id == internship_id,
        )
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_internship(
        self,
        db: AsyncSession,
        internship_id: str,
        *,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Application]:
        query = select(self.model).where(self.model.internship_id == internship_id)
        if status:
            query = query.where(self.model.status == status)
        query = query.order_by(self.model.applied_at.desc()).offset(skip).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def count_by_internship(
        self,
        db: AsyncSession,
        internship_id: str,
        *,
        status: Optional[str] = None
    ) -> int:
        query = select(func.count()).select_from(self.model).where(
            self.model.internship_id == internship_id
        )
        if status:
            query = query.where(self.model.status == status)
        result = await db.execute(query)
        return result.scalar() or 0

    async def get_flat(
        self,
        db: AsyncSession,
        *,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Application]:
        """Cross-internship listing (the flat applications read path)"""
        query = select(self.model)
        if status:
            query = query.where(self.model.status == status)
        query = query.order_by(self.model.applied_at.desc()).offset(skip).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def count_flat(self, db: AsyncSession, *, status: Optional[str] = None) -> int:
        query = select(func.count()).select_from(self.model)
        if status:
            query = query.where(self.model.status == status)
        result = await db.execute(query)
        return result.scalar() or 0

    async def get_by_student(
        self,
        db: AsyncSession,
        internship_id: str,
        student_id: str
    ) -> Optional[Application]:
        """The (student, internship) pair is unique"""
        result = await db.execute(
            select(self.model).where(
                self.model.internship_id == internship_id,
                self.model.student_id == student_id,
            )
        )
        return result.scalar_one_or_none()


application_crud = CRUDApplication(Application)
