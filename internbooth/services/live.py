"""
Live collection subscriptions

Observers receive the whole collection as a list of JSON-ready dicts after
every committed protocol write that touches it.
"""
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from internbooth.core.change_feed import Callback, Collection, change_feed
from internbooth.crud import application_crud, assignment_crud, submission_crud


def _loader(crud):
    async def load(db: AsyncSession):
        return [obj.model_dump(mode="json") for obj in await crud.get_all(db)]
    return load


change_feed.register_loader(Collection.APPLICATIONS, _loader(application_crud))
change_feed.register_loader(Collection.TEST_ASSIGNMENTS, _loader(assignment_crud))
change_feed.register_loader(Collection.QUIZ_SUBMISSIONS, _loader(submission_crud))


def on_applications_change(callback: Callback) -> Callable[[], None]:
    """Subscribe to the applications collection; returns unsubscribe"""
    return change_feed.subscribe(Collection.APPLICATIONS, callback)


def on_test_assignments_change(callback: Callback) -> Callable[[], None]:
    """Subscribe to the testsAssigned collection; returns unsubscribe"""
    return change_feed.subscribe(Collection.TEST_ASSIGNMENTS, callback)


def on_quiz_submissions_change(callback: Callback) -> Callable[[], None]:
    return change_feed.subscribe(Collection.QUIZ_SUBMISSIONS, callback)


async def publish(db: AsyncSession, *collections: Collection) -> None:
    await change_feed.publish(db, *collections)
