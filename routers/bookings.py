"""
Bookings Router
Version: 1.0

Customers book for themselves; staff move bookings through the lifecycle.
DEPENDS ON: services/booking_service.py
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models import User
from routers.responses import dump, dump_page, respond
from schemas import BookingCreate, BookingOut, BookingStatus, BookingStatusUpdate
from security import get_current_user
from services.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("")
async def list_bookings(
    status: Optional[BookingStatus] = None,
    customer_id: Optional[int] = None,
    vehicle_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await BookingService(db).list_bookings(
        user,
        status=status.value if status else None,
        customer_id=customer_id,
        vehicle_id=vehicle_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        per_page=per_page,
    )
    return respond(dump_page(result, BookingOut))


@router.post("")
async def create_booking(
    payload: BookingCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    booking = await BookingService(db).create(
        user, payload.vehicle_id, payload.start_date, payload.end_date, payload.notes
    )
    return respond(dump(booking, BookingOut), "Booking created successfully", status_code=201)


@router.get("/{booking_id}")
async def get_booking(
    booking_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    booking = await BookingService(db).get_for(user, booking_id)
    return respond(dump(booking, BookingOut))


@router.put("/{booking_id}")
async def update_booking_status(
    booking_id: int,
    payload: BookingStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    booking = await BookingService(db).update_status(
        booking_id, payload.status.value, user, notes=payload.notes
    )
    return respond(dump(booking, BookingOut), "Booking status updated successfully")


@router.delete("/{booking_id}")
async def cancel_booking(
    booking_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Cancel, not delete: the row is kept with status cancelled."""
    booking = await BookingService(db).cancel(booking_id, user)
    return respond(dump(booking, BookingOut), "Booking cancelled successfully")
