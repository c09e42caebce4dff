"""
Reference document CRUD - students, internships and tests
"""
from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.models.reference import Student, Internship
from internbooth.models.question_bank import Test
from .base import CRUDBase


class CRUDTest(CRUDBase[Test]):

    async def get_by_status(self, db: AsyncSession, status: str) -> List[Test]:
        result = await db.execute(
            select(self.model)
            .where(self.model.status == status)
            .order_by(self.model.created_at.desc())
        )
        return list(result.scalars().all())


student_crud = CRUDBase(Student)
internship_crud = CRUDBase(Internship)
test_crud = CRUDTest(Test)
