"""
Dashboard Service
Version: 1.0

Role-dependent landing page summaries and fleet statistics.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Activity, Booking, User, Vehicle
from schemas import BookingStatus, Role, VehicleStatus
from services import policies
from services.availability import AvailabilityChecker
from services.report_aggregator import EARNING_STATUSES


def _month_start(day: date) -> datetime:
    return datetime(day.year, day.month, 1)


def _next_month_start(day: date) -> datetime:
    if day.month == 12:
        return datetime(day.year + 1, 1, 1)
    return datetime(day.year, day.month + 1, 1)


class DashboardService:

    def __init__(self, db: AsyncSession, today: Callable[[], date] = date.today):
        self.db = db
        self.today = today

    async def _count(self, model, *conditions) -> int:
        stmt = select(func.count()).select_from(model).where(*conditions)
        return (await self.db.execute(stmt)).scalar_one()

    async def _revenue(self, *conditions) -> float:
        stmt = select(func.coalesce(func.sum(Booking.total_amount), 0)).where(
            Booking.status.in_(EARNING_STATUSES), *conditions
        )
        return float((await self.db.execute(stmt)).scalar_one())

    async def _counts_by(self, column, *conditions) -> Dict[str, int]:
        stmt = select(column, func.count()).where(*conditions).group_by(column)
        return {key: count for key, count in (await self.db.execute(stmt)).all()}

    async def _monthly_revenue(self) -> float:
        today = self.today()
        return await self._revenue(
            Booking.created_at >= _month_start(today),
            Booking.created_at < _next_month_start(today),
        )

    async def overview(self, actor: User) -> Dict[str, Any]:
        if policies.is_elevated(actor):
            return await self._staff_overview()
        return await self._customer_overview(actor)

    async def _staff_overview(self) -> Dict[str, Any]:
        live = Vehicle.deleted_at.is_(None)
        vehicles = await self._counts_by(Vehicle.status, live)
        bookings = await self._counts_by(Booking.status)

        recent_bookings = (await self.db.execute(
            select(Booking).order_by(Booking.created_at.desc(), Booking.id.desc()).limit(5)
        )).scalars().all()
        recent_activities = (await self.db.execute(
            select(Activity).order_by(Activity.timestamp.desc(), Activity.id.desc()).limit(10)
        )).scalars().all()

        vehicle_types = [
            {"type": t, "count": c}
            for t, c in sorted((await self._counts_by(Vehicle.type, live)).items())
        ]

        today = self.today()
        trends = []
        for offset in range(6, -1, -1):
            day = today - timedelta(days=offset)
            trends.append({
                "date": day.isoformat(),
                "count": await self._count(
                    Booking,
                    Booking.created_at >= datetime.combine(day, time.min),
                    Booking.created_at < datetime.combine(day + timedelta(days=1), time.min),
                ),
            })

        return {
            "stats": {
                "total_vehicles": sum(vehicles.values()),
                "available_vehicles": vehicles.get(VehicleStatus.AVAILABLE.value, 0),
                "rented_vehicles": vehicles.get(VehicleStatus.RENTED.value, 0),
                "maintenance_vehicles": vehicles.get(VehicleStatus.MAINTENANCE.value, 0),
                "total_users": await self._count(User, User.role == Role.CUSTOMER.value),
                "total_bookings": sum(bookings.values()),
                "pending_bookings": bookings.get(BookingStatus.PENDING.value, 0),
                "active_bookings": bookings.get(BookingStatus.ACTIVE.value, 0),
                "monthly_revenue": await self._monthly_revenue(),
            },
            "recent_bookings": list(recent_bookings),
            "recent_activities": list(recent_activities),
            "vehicle_types": vehicle_types,
            "booking_trends": trends,
        }

    async def _customer_overview(self, actor: User) -> Dict[str, Any]:
        own = Booking.customer_id == actor.id
        bookings = await self._counts_by(Booking.status, own)
        today = self.today()

        recent_bookings = (await self.db.execute(
            select(Booking).where(own).order_by(Booking.created_at.desc(), Booking.id.desc()).limit(5)
        )).scalars().all()
        current = (await self.db.execute(
            select(Booking).where(
                own,
                Booking.status == BookingStatus.ACTIVE.value,
                Booking.start_date <= today,
                Booking.end_date >= today,
            ).limit(1)
        )).scalars().first()
        recent_activities = (await self.db.execute(
            select(Activity).where(Activity.user_id == actor.id)
            .order_by(Activity.timestamp.desc(), Activity.id.desc()).limit(5)
        )).scalars().all()
        available = await AvailabilityChecker(self.db).available_vehicles()

        return {
            "stats": {
                "total_bookings": sum(bookings.values()),
                "active_bookings": bookings.get(BookingStatus.ACTIVE.value, 0),
                "pending_bookings": bookings.get(BookingStatus.PENDING.value, 0),
                "completed_bookings": bookings.get(BookingStatus.COMPLETED.value, 0),
            },
            "recent_bookings": list(recent_bookings),
            "current_booking": current,
            "available_vehicles": available[:6],
            "recent_activities": list(recent_activities),
        }

    async def stats(self, actor: User) -> Dict[str, Any]:
        """Fleet-wide counters. Staff only."""
        policies.require(actor, policies.Capability.VIEW_STATS)

        vehicles = await self._counts_by(Vehicle.status, Vehicle.deleted_at.is_(None))
        bookings = await self._counts_by(Booking.status)
        users = await self._counts_by(User.role)
        today = self.today()

        return {
            "vehicles": {
                "total": sum(vehicles.values()),
                **{s.value: vehicles.get(s.value, 0) for s in VehicleStatus},
            },
            "bookings": {
                "total": sum(bookings.values()),
                **{s.value: bookings.get(s.value, 0) for s in BookingStatus},
            },
            "users": {
                "total": sum(users.values()),
                "customers": users.get(Role.CUSTOMER.value, 0),
                "staff": users.get(Role.STAFF.value, 0),
                "admins": users.get(Role.ADMIN.value, 0),
            },
            "revenue": {
                "total": await self._revenue(),
                "this_month": await self._monthly_revenue(),
                "this_year": await self._revenue(
                    Booking.created_at >= datetime(today.year, 1, 1),
                    Booking.created_at < datetime(today.year + 1, 1, 1),
                ),
            },
        }
