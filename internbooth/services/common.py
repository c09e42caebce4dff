"""
Shared protocol plumbing - actor checks, the unit of work and the advisory
quiz submission mirror
"""
import functools
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.core.exceptions import AuthRequiredError, TransientStoreError
from internbooth.crud import submission_crud


def require_actor(actor: Optional[str]) -> str:
    """The signed-in admin's uid; raised before any read or write"""
    if actor is None or not actor.strip():
        raise AuthRequiredError()
    return actor.strip()


def store_errors(func):
    """
    Surface driver failures as TransientStoreError

    The wrapped coroutine takes the session as its first argument; it is
    rolled back before the error propagates.
    """
    @functools.wraps(func)
    async def wrapper(db: AsyncSession, *args, **kwargs):
        try:
            return await func(db, *args, **kwargs)
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.warning(f"{func.__name__} aborted by the store: {exc}")
            raise TransientStoreError(f"{func.__name__} failed: the data store aborted the operation, please retry") from exc
    return wrapper


@asynccontextmanager
async def unit_of_work(db: AsyncSession):
    """All writes made inside the block commit together or not at all"""
    try:
        yield db
        await db.commit()
    except BaseException:
        await db.rollback()
        raise


def detach(db: AsyncSession, *objs: Any) -> None:
    """Keep committed objects readable after a later rollback on the session"""
    for obj in objs:
        if obj is not None and obj in db:
            db.expunge(obj)


async def mirror_quiz_submission(
    db: AsyncSession,
    submission_id: Optional[str],
    values: Dict[str, Any]
) -> bool:
    """
    Best-effort copy of a decision onto the linked quiz submission

    Runs after the primary commit. A failure is logged and rolled back on
    its own; the application and assignment stay authoritative.
    """
    if not submission_id:
        logger.warning("No quiz_submission_id on application, skipping submission mirror")
        return False

    try:
        submission = await submission_crud.get(db, submission_id)
        if submission is None:
            logger.warning(f"Quiz submission {submission_id} not found, skipping mirror")
            return False
        await submission_crud.update(db, db_obj=submission, obj_in=values)
        await db.commit()
        detach(db, submission)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning(f"Could not update quiz submission {submission_id}: {exc}")
        return False

    logger.info(f"Quiz submission {submission_id} mirrored as {values.get('status')}")
    return True
