"""
Maintenance Service
Version: 1.0

Service history per vehicle. Purely informational; never touches bookings.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from database import transaction
from models import MaintenanceRecord, User, utcnow
from services import policies
from services.errors import NotFoundError
from services.events import ActivityEvent, EventDispatcher
from services.pagination import paginate
from services.vehicle_service import VehicleService

logger = logging.getLogger(__name__)
settings = get_settings()


class MaintenanceService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.vehicles = VehicleService(db)
        self.dispatcher = EventDispatcher(db)

    async def get(self, record_id: int) -> MaintenanceRecord:
        record = await self.db.get(MaintenanceRecord, record_id)
        if record is None:
            raise NotFoundError.for_entity("Maintenance record", record_id)
        return record

    async def list_records(
        self,
        vehicle_id: Optional[int] = None,
        record_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        per_page: Optional[int] = None
    ) -> Dict[str, Any]:
        stmt = select(MaintenanceRecord)
        if vehicle_id is not None:
            stmt = stmt.where(MaintenanceRecord.vehicle_id == vehicle_id)
        if record_type:
            stmt = stmt.where(MaintenanceRecord.type == record_type)
        if start_date is not None and end_date is not None:
            stmt = stmt.where(MaintenanceRecord.date.between(start_date, end_date))

        stmt = stmt.order_by(MaintenanceRecord.date.desc(), MaintenanceRecord.id.desc())
        return await paginate(self.db, stmt, page, per_page or settings.PAGE_SIZE)

    async def for_vehicle(self, vehicle_id: int) -> List[MaintenanceRecord]:
        await self.vehicles.get(vehicle_id)
        stmt = (
            select(MaintenanceRecord)
            .where(MaintenanceRecord.vehicle_id == vehicle_id)
            .order_by(MaintenanceRecord.date.desc(), MaintenanceRecord.id.desc())
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def _log(self, actor: User, action: str, record_id: int, verb: str, vehicle) -> None:
        await self.dispatcher.dispatch([ActivityEvent(
            user_id=actor.id,
            action=action,
            entity="maintenance_record",
            entity_id=str(record_id),
            details=f"{verb} maintenance record for vehicle: {vehicle.display_name}",
        )])

    async def create(self, actor: User, fields: Dict[str, Any]) -> MaintenanceRecord:
        policies.require(actor, policies.Capability.MANAGE_MAINTENANCE)

        async with transaction(self.db):
            vehicle = await self.vehicles.get(fields["vehicle_id"])
            record = MaintenanceRecord(vehicle=vehicle, **{k: v for k, v in fields.items() if k != "vehicle_id"})
            self.db.add(record)
            await self.db.flush()
            await self._log(actor, "created", record.id, "Added", vehicle)

        return record

    async def update(self, actor: User, record_id: int, fields: Dict[str, Any]) -> MaintenanceRecord:
        policies.require(actor, policies.Capability.MANAGE_MAINTENANCE)

        async with transaction(self.db):
            record = await self.get(record_id)
            if "vehicle_id" in fields:
                record.vehicle = await self.vehicles.get(fields.pop("vehicle_id"))
            for key, value in fields.items():
                setattr(record, key, value)
            record.updated_at = utcnow()
            await self._log(actor, "updated", record.id, "Updated", record.vehicle)

        return record

    async def delete(self, actor: User, record_id: int) -> None:
        policies.require(actor, policies.Capability.MANAGE_MAINTENANCE)

        async with transaction(self.db):
            record = await self.get(record_id)
            vehicle = record.vehicle
            await self.db.delete(record)
            await self._log(actor, "deleted", record_id, "Deleted", vehicle)
