"""
Snapshot listener registry shared by the storage backends.

Backends call publish() after each change with the collection's full
entity set. A listener that raises is logged and skipped so one broken
subscriber cannot block the write or the other subscribers.
"""

from typing import Callable

import structlog

from finance_dashboard.models.finance import SnapshotCollection
from finance_dashboard.services.storage.interface import (
    SnapshotCallback,
    Subscription,
)

logger = structlog.get_logger(__name__)


class _HubSubscription(Subscription):

    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self._active = True

    def unsubscribe(self) -> None:
        if self._active:
            self._cancel()
            self._active = False


class SnapshotHub:
    """Per-(user, collection) listener lists."""

    def __init__(self):
        self._listeners: dict[tuple[str, SnapshotCollection], list[SnapshotCallback]] = {}

    def subscribe(
        self,
        user_id: str,
        collection: SnapshotCollection,
        callback: SnapshotCallback,
    ) -> Subscription:
        key = (user_id, collection)
        self._listeners.setdefault(key, []).append(callback)

        def cancel():
            callbacks = self._listeners.get(key, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return _HubSubscription(cancel)

    def has_listeners(self, user_id: str, collection: SnapshotCollection) -> bool:
        return bool(self._listeners.get((user_id, collection)))

    def publish(
        self,
        user_id: str,
        collection: SnapshotCollection,
        snapshot: object,
    ) -> int:
        """Deliver a snapshot; returns how many listeners received it."""
        delivered = 0
        for callback in list(self._listeners.get((user_id, collection), [])):
            try:
                callback(snapshot)
                delivered += 1
            except Exception as e:
                logger.error(
                    "snapshot_listener_failed",
                    user_id=user_id,
                    collection=collection.value,
                    error=str(e),
                )
        return delivered
