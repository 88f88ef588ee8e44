"""
Maintenance Router
Version: 1.0
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models import User
from routers.responses import dump, dump_many, dump_page, respond
from schemas import MaintenanceCreate, MaintenanceOut, MaintenanceUpdate
from security import get_current_user
from services.maintenance_service import MaintenanceService

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.get("")
async def list_records(
    vehicle_id: Optional[int] = None,
    type: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await MaintenanceService(db).list_records(
        vehicle_id=vehicle_id,
        record_type=type,
        start_date=start_date,
        end_date=end_date,
        page=page,
        per_page=per_page,
    )
    return respond(dump_page(result, MaintenanceOut))


@router.post("")
async def create_record(
    payload: MaintenanceCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    record = await MaintenanceService(db).create(user, payload.model_dump())
    return respond(dump(record, MaintenanceOut), "Maintenance record created successfully", status_code=201)


@router.get("/vehicle/{vehicle_id}")
async def vehicle_history(
    vehicle_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    records = await MaintenanceService(db).for_vehicle(vehicle_id)
    return respond(dump_many(records, MaintenanceOut))


@router.get("/{record_id}")
async def get_record(
    record_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    record = await MaintenanceService(db).get(record_id)
    return respond(dump(record, MaintenanceOut))


@router.put("/{record_id}")
async def update_record(
    record_id: int,
    payload: MaintenanceUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    record = await MaintenanceService(db).update(user, record_id, payload.model_dump(exclude_unset=True))
    return respond(dump(record, MaintenanceOut), "Maintenance record updated successfully")


@router.delete("/{record_id}")
async def delete_record(
    record_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await MaintenanceService(db).delete(user, record_id)
    return respond(message="Maintenance record deleted successfully")
