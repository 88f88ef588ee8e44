"""
Vehicle Service
Version: 1.0

Fleet CRUD. Vehicles are soft-deleted and hidden afterwards.
DEPENDS ON: models.py, services/events.py, services/policies.py
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from database import transaction
from models import Booking, User, Vehicle, utcnow
from services import policies
from services.availability import BLOCKING_STATUSES
from services.errors import ConflictError, NotFoundError
from services.events import ActivityEvent, EventDispatcher
from services.pagination import paginate

logger = logging.getLogger(__name__)
settings = get_settings()


class VehicleService:
    """Vehicle lookup, listing and administrative edits."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.dispatcher = EventDispatcher(db)

    async def get(self, vehicle_id: int) -> Vehicle:
        stmt = select(Vehicle).where(Vehicle.id == vehicle_id, Vehicle.deleted_at.is_(None))
        vehicle = (await self.db.execute(stmt)).scalars().first()
        if vehicle is None:
            raise NotFoundError.for_entity("Vehicle", vehicle_id)
        return vehicle

    async def list_vehicles(
        self,
        status: Optional[str] = None,
        vehicle_type: Optional[str] = None,
        search: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        page: int = 1,
        per_page: Optional[int] = None
    ) -> Dict[str, Any]:
        stmt = select(Vehicle).where(Vehicle.deleted_at.is_(None))

        if status:
            stmt = stmt.where(Vehicle.status == status)
        if vehicle_type:
            stmt = stmt.where(Vehicle.type == vehicle_type)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Vehicle.make.ilike(pattern), Vehicle.model.ilike(pattern)))
        if min_price is not None:
            stmt = stmt.where(Vehicle.rental_price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Vehicle.rental_price <= max_price)

        stmt = stmt.order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
        return await paginate(self.db, stmt, page, per_page or settings.PAGE_SIZE)

    async def _ensure_unique_plate(self, license_plate: str, exclude_id: Optional[int] = None) -> None:
        # Soft-deleted rows still own their plate at the database level
        stmt = select(Vehicle.id).where(Vehicle.license_plate == license_plate)
        if exclude_id is not None:
            stmt = stmt.where(Vehicle.id != exclude_id)
        if (await self.db.execute(stmt)).first() is not None:
            raise ConflictError(
                "Validation error",
                {"license_plate": ["The license plate has already been taken."]}
            )

    async def create(self, actor: User, fields: Dict[str, Any]) -> Vehicle:
        policies.require(actor, policies.Capability.MANAGE_VEHICLES)

        async with transaction(self.db):
            await self._ensure_unique_plate(fields["license_plate"])
            vehicle = Vehicle(**fields)
            self.db.add(vehicle)
            await self.db.flush()

            await self.dispatcher.dispatch([ActivityEvent(
                user_id=actor.id,
                action="created",
                entity="vehicle",
                entity_id=str(vehicle.id),
                details=f"Created vehicle: {vehicle.display_name}",
            )])

        logger.info(f"Vehicle {vehicle.id} ({vehicle.license_plate}) created by user {actor.id}")
        return vehicle

    async def update(self, actor: User, vehicle_id: int, fields: Dict[str, Any]) -> Vehicle:
        """Partial update; only keys present in fields change."""
        policies.require(actor, policies.Capability.MANAGE_VEHICLES)

        async with transaction(self.db):
            vehicle = await self.get(vehicle_id)
            if fields.get("license_plate") and fields["license_plate"] != vehicle.license_plate:
                await self._ensure_unique_plate(fields["license_plate"], exclude_id=vehicle.id)

            for key, value in fields.items():
                setattr(vehicle, key, value)
            vehicle.updated_at = utcnow()

            await self.dispatcher.dispatch([ActivityEvent(
                user_id=actor.id,
                action="updated",
                entity="vehicle",
                entity_id=str(vehicle.id),
                details=f"Updated vehicle: {vehicle.display_name}",
            )])

        return vehicle

    async def delete(self, actor: User, vehicle_id: int) -> None:
        """
        Soft delete.

        Raises:
            ConflictError: the vehicle still holds approved or active bookings
        """
        policies.require(actor, policies.Capability.MANAGE_VEHICLES)

        async with transaction(self.db):
            vehicle = await self.get(vehicle_id)

            stmt = select(Booking.id).where(
                Booking.vehicle_id == vehicle.id,
                Booking.status.in_(BLOCKING_STATUSES),
            ).limit(1)
            if (await self.db.execute(stmt)).first() is not None:
                raise ConflictError("Cannot delete vehicle with active bookings")

            vehicle.deleted_at = utcnow()

            await self.dispatcher.dispatch([ActivityEvent(
                user_id=actor.id,
                action="deleted",
                entity="vehicle",
                entity_id=str(vehicle.id),
                details=f"Deleted vehicle: {vehicle.display_name}",
            )])

        logger.info(f"Vehicle {vehicle_id} soft-deleted by user {actor.id}")
