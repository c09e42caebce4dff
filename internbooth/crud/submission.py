"""
Quiz submission CRUD
"""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.models.submission import QuizSubmission
from .base import CRUDBase


class CRUDQuizSubmission(CRUDBase[QuizSubmission]):

    async def get_latest_by_application(
        self,
        db: AsyncSession,
        application_id: str
    ) -> Optional[QuizSubmission]:
        result = await db.execute(
            select(self.model)
            .where(self.model.application_id == application_id)
            .order_by(self.model.submitted_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()


submission_crud = CRUDQuizSubmission(QuizSubmission)
