"""
Availability Checker
Version: 1.0

Decides whether a vehicle is free for a calendar date range.
Read-only: never writes to the session.
DEPENDS ON: models.py, config.py

Overlap convention:
- default (inclusive): both endpoints are rental days, so a booking that
  ends on day X conflicts with one that starts on day X
- ALLOW_SAME_DAY_TURNOVER: the end date is the return day and the vehicle
  may be handed out again that same day
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import and_, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from models import Booking, Vehicle
from schemas import BookingStatus, VehicleStatus
from services.errors import ValidationError

logger = logging.getLogger(__name__)
settings = get_settings()

# Bookings that hold the vehicle for their date range
BLOCKING_STATUSES = (BookingStatus.APPROVED.value, BookingStatus.ACTIVE.value)


def ranges_overlap(
    existing_start: date,
    existing_end: date,
    requested_start: date,
    requested_end: date,
    allow_same_day_turnover: bool = False
) -> bool:
    """Pure form of the overlap predicate used in the SQL below."""
    if allow_same_day_turnover:
        return existing_start < requested_end and existing_end > requested_start
    return existing_start <= requested_end and existing_end >= requested_start


class AvailabilityChecker:
    """Booking overlap queries for one session."""

    def __init__(self, db: AsyncSession, allow_same_day_turnover: Optional[bool] = None):
        self.db = db
        if allow_same_day_turnover is None:
            allow_same_day_turnover = settings.ALLOW_SAME_DAY_TURNOVER
        self.allow_same_day_turnover = allow_same_day_turnover

    def _overlap_clause(self, start_date: date, end_date: date):
        if self.allow_same_day_turnover:
            return and_(Booking.start_date < end_date, Booking.end_date > start_date)
        return and_(Booking.start_date <= end_date, Booking.end_date >= start_date)

    @staticmethod
    def _check_range(start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise ValidationError.for_field("end_date", "The end date must not be before the start date.")

    async def conflicting_bookings(
        self,
        vehicle_id: int,
        start_date: date,
        end_date: date,
        exclude_booking_id: Optional[int] = None
    ) -> List[Booking]:
        """
        Approved or active bookings of the vehicle that intersect the range.

        An unknown vehicle simply has no bookings, so the result is empty.
        """
        self._check_range(start_date, end_date)

        stmt = select(Booking).where(
            Booking.vehicle_id == vehicle_id,
            Booking.status.in_(BLOCKING_STATUSES),
            self._overlap_clause(start_date, end_date),
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)

        result = await self.db.execute(stmt.order_by(Booking.start_date))
        return list(result.scalars().all())

    async def is_available(self, vehicle_id: int, start_date: date, end_date: date) -> bool:
        """True when no approved/active booking of the vehicle overlaps the range."""
        conflicts = await self.conflicting_bookings(vehicle_id, start_date, end_date)
        if conflicts:
            logger.debug(
                f"Vehicle {vehicle_id} busy {start_date}..{end_date}: "
                f"bookings {[b.id for b in conflicts]}"
            )
        return not conflicts

    async def available_vehicles(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[Vehicle]:
        """
        Vehicles in 'available' status, cheapest first.

        With a date range, vehicles holding an overlapping booking are excluded.
        """
        stmt = select(Vehicle).where(
            Vehicle.deleted_at.is_(None),
            Vehicle.status == VehicleStatus.AVAILABLE.value,
        )

        if start_date is not None and end_date is not None:
            self._check_range(start_date, end_date)
            busy = exists().where(
                Booking.vehicle_id == Vehicle.id,
                Booking.status.in_(BLOCKING_STATUSES),
                self._overlap_clause(start_date, end_date),
            )
            stmt = stmt.where(~busy)

        result = await self.db.execute(stmt.order_by(Vehicle.rental_price.asc(), Vehicle.id))
        return list(result.scalars().all())
