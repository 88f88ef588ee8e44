"""
Tests for EventDispatcher
Version: 1.0
"""

import pytest
from sqlalchemy import select

from models import Activity, Notification
from services.events import ActivityEvent, EventDispatcher, NotificationEvent


class TestEventDispatcher:

    @pytest.mark.asyncio
    async def test_rows_follow_event_order(self, db, users):
        user_id = users["customer"].id
        rows = await EventDispatcher(db).dispatch([
            ActivityEvent(user_id=user_id, action="created", entity="booking", entity_id=5, details="Created"),
            NotificationEvent(user_id=user_id, title="Hello", message="World", type="success"),
        ])
        await db.commit()

        assert isinstance(rows[0], Activity) and rows[0].id is not None
        assert rows[0].entity_id == "5"
        assert isinstance(rows[1], Notification) and rows[1].read is False

        stored = (await db.execute(select(Notification))).scalars().one()
        assert stored.type == "success"

    @pytest.mark.asyncio
    async def test_empty_batch(self, db):
        assert await EventDispatcher(db).dispatch([]) == []

    @pytest.mark.asyncio
    async def test_unknown_event(self, db):
        with pytest.raises(TypeError):
            await EventDispatcher(db).dispatch(["not an event"])
