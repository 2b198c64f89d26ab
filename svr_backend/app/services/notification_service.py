"""
Notification Service.

Keeps the most recent notifications in memory. Live request deltas feed
``added``/``updated``/``deleted`` entries; failed mutations feed the
matching ``... attempt`` entries.
"""

import enum
import logging
import uuid
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List

from svr_backend.app.core.exceptions import AppException
from svr_backend.app.services.live_sync import Delta, DeltaKind

logger = logging.getLogger("svr.notifications")


class NotificationType(str, enum.Enum):
    ADDED = "added"
    ADD_ATTEMPT = "add attempt"
    UPDATED = "updated"
    UPDATE_ATTEMPT = "update attempt"
    DELETED = "deleted"
    DELETE_ATTEMPT = "delete attempt"


@dataclass(frozen=True)
class Notification:
    id: str
    type: NotificationType
    details: str
    timestamp: datetime


class NotificationCenter:

    def __init__(self, limit: int = 5):
        self._items = deque(maxlen=limit)

    def add(self, type: NotificationType, details: str) -> Notification:
        """Record a notification; the oldest one drops out past the limit."""
        notification = Notification(
            id=str(uuid.uuid4()),
            type=type,
            details=details,
            timestamp=datetime.now(timezone.utc)
        )
        self._items.appendleft(notification)
        logger.info("[%s] %s", type.value, details)
        return notification

    def recent(self) -> List[Notification]:
        """Notifications, newest first."""
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    @contextmanager
    def record_failure(self, type: NotificationType, details: str):
        """Record an ``... attempt`` notification if the wrapped mutation fails, then re-raise."""
        try:
            yield
        except AppException as exc:
            self.add(type, f"{details} Error: {exc.message}")
            raise

    def on_request_change(self, delta: Delta) -> None:
        """Consumer for the request synchronizer's deltas."""
        request = delta.document
        vehicle = request.requested_vehicle or "(no vehicle)"
        if delta.kind == DeltaKind.ADDED:
            self.add(NotificationType.ADDED, f"{request.requester_name} Added request {vehicle}.")
        elif delta.kind == DeltaKind.MODIFIED:
            self.add(NotificationType.UPDATED, f"{request.requester_name} Updated request {vehicle} ({request.status}).")
        elif delta.kind == DeltaKind.REMOVED:
            self.add(NotificationType.DELETED, f"{request.requester_name} Deleted request: \"{vehicle}\"")
