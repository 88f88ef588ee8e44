"""
Activity Service
Version: 1.0

Read side of the audit trail. Rows are written only by EventDispatcher.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from models import Activity, User, utcnow
from services import policies
from services.errors import NotFoundError
from services.pagination import paginate

settings = get_settings()


class ActivityService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_activities(
        self,
        actor: User,
        user_id: Optional[int] = None,
        entity: Optional[str] = None,
        action: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        per_page: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Newest first.

        Customers see their own entries only. Without a date range the
        listing covers the last ACTIVITY_DEFAULT_DAYS days.
        """
        stmt = select(Activity)

        if not policies.has_capability(actor, policies.Capability.VIEW_ALL_ACTIVITIES):
            stmt = stmt.where(Activity.user_id == actor.id)
        elif user_id is not None:
            stmt = stmt.where(Activity.user_id == user_id)

        if entity:
            stmt = stmt.where(Activity.entity == entity)
        if action:
            stmt = stmt.where(Activity.action == action)

        if start_date is not None and end_date is not None:
            stmt = stmt.where(
                Activity.timestamp >= datetime.combine(start_date, time.min),
                Activity.timestamp < datetime.combine(end_date + timedelta(days=1), time.min),
            )
        elif start_date is None and end_date is None:
            stmt = stmt.where(Activity.timestamp >= utcnow() - timedelta(days=settings.ACTIVITY_DEFAULT_DAYS))

        stmt = stmt.order_by(Activity.timestamp.desc(), Activity.id.desc())
        return await paginate(self.db, stmt, page, per_page or settings.ACTIVITY_PAGE_SIZE)

    async def get(self, actor: User, activity_id: int) -> Activity:
        activity = await self.db.get(Activity, activity_id)
        if activity is None:
            raise NotFoundError.for_entity("Activity", activity_id)
        policies.can_view_activity(actor, activity)
        return activity

    async def for_entity(self, entity: str, entity_id: str, page: int = 1) -> Dict[str, Any]:
        stmt = (
            select(Activity)
            .where(Activity.entity == entity, Activity.entity_id == str(entity_id))
            .order_by(Activity.timestamp.desc(), Activity.id.desc())
        )
        return await paginate(self.db, stmt, page, 10)

    async def for_user(self, actor: User, user_id: int, page: int = 1) -> Dict[str, Any]:
        policies.can_view_user_activities(actor, user_id)
        stmt = (
            select(Activity)
            .where(Activity.user_id == user_id)
            .order_by(Activity.timestamp.desc(), Activity.id.desc())
        )
        return await paginate(self.db, stmt, page, settings.PAGE_SIZE)
