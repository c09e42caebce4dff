"""
In-process live query feed

Observers subscribe to a collection and receive the full collection
snapshot after every committed write touching it. No delta semantics.
"""
import inspect
from enum import Enum
from threading import Lock
from typing import Any, Awaitable, Callable, Dict, List

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


Snapshot = List[Dict[str, Any]]
Callback = Callable[[Snapshot], Any]
Loader = Callable[[AsyncSession], Awaitable[Snapshot]]


class Collection(str, Enum):
    """Observable document collections"""
    APPLICATIONS = "applications"
    TEST_ASSIGNMENTS = "testsAssigned"
    QUIZ_SUBMISSIONS = "quizSubmissions"


class ChangeFeed:
    """
    Subscriber registry

    Callbacks may be plain functions or coroutine functions.
    """

    def __init__(self):
        self._subscribers: Dict[Collection, Dict[int, Callback]] = {}
        self._loaders: Dict[Collection, Loader] = {}
        self._lock = Lock()
        self._next_token = 0

    def register_loader(self, collection: Collection, loader: Loader) -> None:
        """Set the snapshot query used for a collection"""
        with self._lock:
            self._loaders[collection] = loader

    def subscribe(self, collection: Collection, callback: Callback) -> Callable[[], None]:
        """Register a callback; returns the unsubscribe function"""
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers.setdefault(collection, {})[token] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.get(collection, {}).pop(token, None)

        return unsubscribe

    def subscriber_count(self, collection: Collection) -> int:
        with self._lock:
            return len(self._subscribers.get(collection, {}))

    async def publish(self, db: AsyncSession, *collections: Collection) -> None:
        """Push fresh snapshots of the given collections to their observers"""
        for collection in collections:
            with self._lock:
                callbacks = list(self._subscribers.get(collection, {}).values())
                loader = self._loaders.get(collection)
            if not callbacks or loader is None:
                continue

            try:
                snapshot = await loader(db)
            except Exception:
                logger.exception(f"Snapshot query failed for {collection.value}")
                continue

            for callback in callbacks:
                try:
                    result = callback(snapshot)
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logger.exception(f"Subscriber of {collection.value} raised")

    def clear(self) -> None:
        """Drop every subscriber (loaders stay registered)"""
        with self._lock:
            self._subscribers.clear()


# Global singleton
change_feed = ChangeFeed()
