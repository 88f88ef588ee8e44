"""
Domain Events
Version: 1.0

Side effects of business operations, expressed as plain data.
Lifecycle code returns events; EventDispatcher persists them as Activity
and Notification rows inside the caller's transaction.
DEPENDS ON: models.py, services/metrics.py
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Union

from sqlalchemy.ext.asyncio import AsyncSession

from models import Activity, Notification, utcnow
from services.metrics import ACTIVITIES_RECORDED, NOTIFICATIONS_DISPATCHED

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityEvent:
    """Audit entry: who did what to which entity."""
    user_id: int
    action: str
    entity: str
    entity_id: str
    details: str


@dataclass(frozen=True)
class NotificationEvent:
    """Message for one user."""
    user_id: int
    title: str
    message: str
    type: str = "info"


DomainEvent = Union[ActivityEvent, NotificationEvent]


class EventDispatcher:
    """Turns domain events into rows on the given session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def dispatch(self, events: Iterable[DomainEvent]) -> List[object]:
        """
        Add one row per event to the session and flush.

        Nothing is committed here; the surrounding transaction decides.

        Returns:
            Created Activity / Notification rows, in event order
        """
        rows: List[object] = []
        for event in events:
            if isinstance(event, ActivityEvent):
                row = Activity(
                    user_id=event.user_id,
                    action=event.action,
                    entity=event.entity,
                    entity_id=str(event.entity_id),
                    details=event.details,
                    timestamp=utcnow(),
                )
                ACTIVITIES_RECORDED.labels(entity=event.entity, action=event.action).inc()
                logger.info(f"Activity {event.action} {event.entity}#{event.entity_id} by user {event.user_id}")
            elif isinstance(event, NotificationEvent):
                row = Notification(
                    user_id=event.user_id,
                    title=event.title,
                    message=event.message,
                    type=event.type,
                    read=False,
                )
                NOTIFICATIONS_DISPATCHED.labels(type=event.type).inc()
                logger.debug(f"Notification '{event.title}' queued for user {event.user_id}")
            else:
                raise TypeError(f"Unknown domain event: {event!r}")

            self.db.add(row)
            rows.append(row)

        if rows:
            await self.db.flush()
        return rows
