"""
Booking Service
Version: 1.0

Applies booking lifecycle plans to the database.
Every mutation runs in one transaction: booking row, vehicle status,
activities and notifications commit together or not at all.
DEPENDS ON: models.py, database.py, services/availability.py,
            services/booking_lifecycle.py, services/events.py, services/policies.py
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from database import transaction
from models import Booking, User, Vehicle
from schemas import ELEVATED_ROLES, VehicleStatus
from services import booking_lifecycle as lifecycle
from services import policies
from services.availability import AvailabilityChecker
from services.errors import ConflictError, NotFoundError
from services.events import EventDispatcher
from services.metrics import BOOKINGS_CREATED, BOOKING_CONFLICTS, record_transition
from services.pagination import paginate

logger = logging.getLogger(__name__)
settings = get_settings()


class BookingService:
    """
    Booking lifecycle over one session.

    Handles:
    - Creation with overlap check and pricing
    - Status transitions with vehicle side effects
    - Customer / staff cancellation
    - Listing and lookup with ownership rules
    """

    def __init__(
        self,
        db: AsyncSession,
        availability: Optional[AvailabilityChecker] = None,
        today: Callable[[], date] = date.today
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            availability: Overlap checker (defaults to one on the same session)
            today: Clock used for the future-start rule
        """
        self.db = db
        self.availability = availability or AvailabilityChecker(db)
        self.today = today
        self.dispatcher = EventDispatcher(db)

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    async def _get_vehicle(self, vehicle_id: int, lock: bool = False, include_deleted: bool = False) -> Vehicle:
        stmt = select(Vehicle).where(Vehicle.id == vehicle_id)
        if not include_deleted:
            stmt = stmt.where(Vehicle.deleted_at.is_(None))
        if lock:
            stmt = stmt.with_for_update()

        vehicle = (await self.db.execute(stmt)).scalars().first()
        if vehicle is None:
            raise NotFoundError.for_entity("Vehicle", vehicle_id)
        return vehicle

    async def get_booking(self, booking_id: int, lock: bool = False) -> Booking:
        stmt = select(Booking).where(Booking.id == booking_id)
        if lock:
            stmt = stmt.with_for_update()

        booking = (await self.db.execute(stmt)).scalars().first()
        if booking is None:
            raise NotFoundError.for_entity("Booking", booking_id)
        return booking

    async def get_for(self, actor: User, booking_id: int) -> Booking:
        booking = await self.get_booking(booking_id)
        policies.can_view_booking(actor, booking)
        return booking

    async def _staff_user_ids(self) -> List[int]:
        stmt = select(User.id).where(User.role.in_(ELEVATED_ROLES), User.is_active.is_(True))
        return list((await self.db.execute(stmt.order_by(User.id))).scalars().all())

    async def _vehicle_active_elsewhere(self, vehicle_id: int, booking_id: int) -> bool:
        stmt = select(Booking.id).where(
            Booking.vehicle_id == vehicle_id,
            Booking.status == lifecycle.ACTIVE,
            Booking.id != booking_id,
        ).limit(1)
        return (await self.db.execute(stmt)).first() is not None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def create(
        self,
        customer: User,
        vehicle_id: int,
        start_date: date,
        end_date: date,
        notes: Optional[str] = None
    ) -> Booking:
        """
        Create a pending booking.

        Raises:
            ValidationError: bad dates or notes
            NotFoundError: unknown vehicle
            ConflictError: vehicle not available or already booked
        """
        lifecycle.validate_booking_request(start_date, end_date, self.today(), notes)

        async with transaction(self.db):
            # Row lock serialises concurrent requests for the same vehicle
            vehicle = await self._get_vehicle(vehicle_id, lock=True)

            if vehicle.status != VehicleStatus.AVAILABLE.value:
                BOOKING_CONFLICTS.labels(stage="create").inc()
                raise ConflictError("Vehicle is not available")

            if not await self.availability.is_available(vehicle.id, start_date, end_date):
                BOOKING_CONFLICTS.labels(stage="create").inc()
                raise ConflictError("Vehicle is already booked for the selected dates")

            booking = Booking(
                customer=customer,
                vehicle=vehicle,
                start_date=start_date,
                end_date=end_date,
                total_amount=lifecycle.quote_total(start_date, end_date, vehicle.rental_price),
                status=lifecycle.PENDING,
                notes=notes,
            )
            self.db.add(booking)
            await self.db.flush()

            plan = lifecycle.plan_create(
                booking_id=booking.id,
                customer_id=customer.id,
                customer_name=customer.name,
                vehicle=vehicle,
                staff_user_ids=await self._staff_user_ids(),
            )
            await self.dispatcher.dispatch(plan.events)

        BOOKINGS_CREATED.inc()
        logger.info(
            f"Booking {booking.id} created: vehicle {vehicle.id} "
            f"{start_date}..{end_date} total {booking.total_amount}"
        )
        return booking

    async def update_status(
        self,
        booking_id: int,
        new_status: str,
        actor: User,
        notes: Optional[str] = None
    ) -> Booking:
        """
        Move a booking through the state machine.

        Raises:
            NotFoundError: unknown booking
            AuthorizationError: actor may not request this status
            ConflictError: illegal transition, overlap with a held booking,
                or holding a vehicle that was removed from the fleet
        """
        async with transaction(self.db):
            booking = await self.get_booking(booking_id, lock=True)
            policies.can_change_booking_status(actor, booking, new_status)

            vehicle = await self._get_vehicle(booking.vehicle_id, lock=True, include_deleted=True)
            old_status = booking.status
            plan = lifecycle.plan_status_change(booking, vehicle, new_status, actor.id)

            if new_status in lifecycle.HOLDING_STATUSES and vehicle.deleted_at is not None:
                BOOKING_CONFLICTS.labels(stage="transition").inc()
                raise ConflictError(
                    "Vehicle is no longer in the fleet",
                    {"status": ["The booked vehicle has been removed."]}
                )

            if new_status in lifecycle.HOLDING_STATUSES:
                conflicts = await self.availability.conflicting_bookings(
                    vehicle.id, booking.start_date, booking.end_date, exclude_booking_id=booking.id
                )
                if conflicts:
                    BOOKING_CONFLICTS.labels(stage="transition").inc()
                    raise ConflictError(
                        "Vehicle is already booked for the selected dates",
                        {"status": [f"Overlaps booking {', '.join(str(b.id) for b in conflicts)}."]}
                    )

            if new_status == lifecycle.ACTIVE and vehicle.status != VehicleStatus.AVAILABLE.value:
                BOOKING_CONFLICTS.labels(stage="transition").inc()
                raise ConflictError(f"Vehicle is currently {vehicle.status}")

            booking.status = plan.booking_status
            if notes is not None:
                booking.notes = notes
            if plan.vehicle_status is not None:
                vehicle.status = plan.vehicle_status

            await self.dispatcher.dispatch(plan.events)

        record_transition(old_status, new_status)
        logger.info(f"Booking {booking.id} {old_status} -> {new_status} by user {actor.id}")
        return booking

    async def cancel(self, booking_id: int, actor: User) -> Booking:
        """
        Withdraw a pending or approved booking.

        Raises:
            NotFoundError: unknown booking
            AuthorizationError: actor is neither owner nor staff
            ConflictError: booking is past the cancellable states
        """
        async with transaction(self.db):
            booking = await self.get_booking(booking_id, lock=True)
            policies.can_cancel_booking(actor, booking)

            vehicle = await self._get_vehicle(booking.vehicle_id, lock=True, include_deleted=True)
            old_status = booking.status
            plan = lifecycle.plan_cancel(
                booking,
                vehicle,
                actor.id,
                vehicle_held_elsewhere=await self._vehicle_active_elsewhere(vehicle.id, booking.id),
            )

            booking.status = plan.booking_status
            if plan.vehicle_status is not None:
                vehicle.status = plan.vehicle_status

            await self.dispatcher.dispatch(plan.events)

        record_transition(old_status, lifecycle.CANCELLED)
        logger.info(f"Booking {booking.id} cancelled by user {actor.id}")
        return booking

    # =========================================================================
    # LISTING
    # =========================================================================

    async def list_bookings(
        self,
        actor: User,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        vehicle_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        per_page: Optional[int] = None
    ) -> Dict[str, Any]:
        """Newest first. Customers only ever see their own bookings."""
        stmt = select(Booking)

        if not policies.has_capability(actor, policies.Capability.VIEW_ALL_BOOKINGS):
            stmt = stmt.where(Booking.customer_id == actor.id)
        elif customer_id is not None:
            stmt = stmt.where(Booking.customer_id == customer_id)

        if status:
            stmt = stmt.where(Booking.status == status)
        if vehicle_id is not None:
            stmt = stmt.where(Booking.vehicle_id == vehicle_id)
        if start_date is not None and end_date is not None:
            stmt = stmt.where(Booking.start_date.between(start_date, end_date))

        stmt = stmt.order_by(Booking.created_at.desc(), Booking.id.desc())
        return await paginate(self.db, stmt, page, per_page or settings.PAGE_SIZE)
