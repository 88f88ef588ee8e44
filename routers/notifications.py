"""
Notifications Router
Version: 1.0

Inbox endpoints. Fixed paths are declared before /{notification_id}.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models import User
from routers.responses import dump, dump_page, respond
from schemas import NotificationCreate, NotificationOut, NotificationType
from security import get_current_user
from services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    read: Optional[bool] = None,
    type: Optional[NotificationType] = None,
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await NotificationService(db).list_for(
        user,
        read=read,
        notification_type=type.value if type else None,
        page=page,
        per_page=per_page,
    )
    return respond(dump_page(result, NotificationOut))


@router.post("")
async def send_notification(
    payload: NotificationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    notification = await NotificationService(db).send(
        user, payload.user_id, payload.title, payload.message, payload.type.value
    )
    return respond(dump(notification, NotificationOut), "Notification created successfully", status_code=201)


@router.get("/unread/count")
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    count = await NotificationService(db).unread_count(user)
    return respond({"count": count})


@router.post("/mark-all-read")
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    updated = await NotificationService(db).mark_all_read(user)
    return respond({"updated": updated}, "All notifications marked as read")


@router.get("/{notification_id}")
async def get_notification(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    notification = await NotificationService(db).get(user, notification_id)
    return respond(dump(notification, NotificationOut))


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    notification = await NotificationService(db).mark_read(user, notification_id)
    return respond(dump(notification, NotificationOut), "Notification marked as read")


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await NotificationService(db).delete(user, notification_id)
    return respond(message="Notification deleted successfully")
