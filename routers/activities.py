"""
Activities Router
Version: 1.0

Read-only view of the audit trail.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models import User
from routers.responses import dump, dump_page, respond
from schemas import ActivityOut
from security import get_current_user
from services.activity_service import ActivityService

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("")
async def list_activities(
    user_id: Optional[int] = None,
    entity: Optional[str] = None,
    action: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await ActivityService(db).list_activities(
        user,
        user_id=user_id,
        entity=entity,
        action=action,
        start_date=start_date,
        end_date=end_date,
        page=page,
        per_page=per_page,
    )
    return respond(dump_page(result, ActivityOut))


@router.get("/entity/{entity}/{entity_id}")
async def entity_activities(
    entity: str,
    entity_id: str,
    page: int = Query(1, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await ActivityService(db).for_entity(entity, entity_id, page)
    return respond(dump_page(result, ActivityOut))


@router.get("/user/{user_id}")
async def user_activities(
    user_id: int,
    page: int = Query(1, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await ActivityService(db).for_user(user, user_id, page)
    return respond(dump_page(result, ActivityOut))


@router.get("/{activity_id}")
async def get_activity(
    activity_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    activity = await ActivityService(db).get(user, activity_id)
    return respond(dump(activity, ActivityOut))
