"""
Notification Service
Version: 1.0

Per-user inbox. Only the owner reads, marks or deletes a notification.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from database import transaction
from models import Notification, User, utcnow
from services import policies
from services.errors import NotFoundError, ValidationError
from services.events import EventDispatcher, NotificationEvent
from services.pagination import paginate

logger = logging.getLogger(__name__)
settings = get_settings()


class NotificationService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _owned(self, actor: User, notification_id: int) -> Notification:
        stmt = select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == actor.id,
        )
        notification = (await self.db.execute(stmt)).scalars().first()
        if notification is None:
            raise NotFoundError.for_entity("Notification", notification_id)
        return notification

    async def list_for(
        self,
        actor: User,
        read: Optional[bool] = None,
        notification_type: Optional[str] = None,
        page: int = 1,
        per_page: Optional[int] = None
    ) -> Dict[str, Any]:
        stmt = select(Notification).where(Notification.user_id == actor.id)
        if read is not None:
            stmt = stmt.where(Notification.read.is_(read))
        if notification_type:
            stmt = stmt.where(Notification.type == notification_type)
        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
        return await paginate(self.db, stmt, page, per_page or settings.PAGE_SIZE)

    async def get(self, actor: User, notification_id: int) -> Notification:
        return await self._owned(actor, notification_id)

    async def mark_read(self, actor: User, notification_id: int) -> Notification:
        async with transaction(self.db):
            notification = await self._owned(actor, notification_id)
            if not notification.read:
                notification.read = True
                notification.read_at = utcnow()
        return notification

    async def mark_all_read(self, actor: User) -> int:
        async with transaction(self.db):
            result = await self.db.execute(
                update(Notification)
                .where(Notification.user_id == actor.id, Notification.read.is_(False))
                .values(read=True, read_at=utcnow())
                .execution_options(synchronize_session=False)
            )
        logger.debug(f"Marked {result.rowcount} notifications read for user {actor.id}")
        return result.rowcount

    async def unread_count(self, actor: User) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.user_id == actor.id,
            Notification.read.is_(False),
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def delete(self, actor: User, notification_id: int) -> None:
        async with transaction(self.db):
            notification = await self._owned(actor, notification_id)
            await self.db.delete(notification)

    async def send(self, actor: User, user_id: int, title: str, message: str, notification_type: str) -> Notification:
        """Staff-authored notification for any existing user."""
        policies.require(actor, policies.Capability.SEND_NOTIFICATIONS)

        async with transaction(self.db):
            if await self.db.get(User, user_id) is None:
                raise ValidationError.for_field("user_id", "The selected user id is invalid.")
            rows = await EventDispatcher(self.db).dispatch([
                NotificationEvent(user_id=user_id, title=title, message=message, type=notification_type)
            ])

        return rows[0]
