"""
Vehicles Router
Version: 1.0

Fleet catalogue. Reads are open to any authenticated user, writes need
the manage-vehicles capability.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models import User
from routers.responses import dump, dump_many, dump_page, respond
from schemas import VehicleCreate, VehicleOut, VehicleStatus, VehicleUpdate
from security import get_current_user
from services.availability import AvailabilityChecker
from services.vehicle_service import VehicleService

router = APIRouter(tags=["vehicles"])


@router.get("/vehicles")
async def list_vehicles(
    status: Optional[VehicleStatus] = None,
    type: Optional[str] = None,
    search: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await VehicleService(db).list_vehicles(
        status=status.value if status else None,
        vehicle_type=type,
        search=search,
        min_price=min_price,
        max_price=max_price,
        page=page,
        per_page=per_page,
    )
    return respond(dump_page(result, VehicleOut))


@router.post("/vehicles")
async def create_vehicle(
    payload: VehicleCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    vehicle = await VehicleService(db).create(user, payload.model_dump())
    return respond(dump(vehicle, VehicleOut), "Vehicle created successfully", status_code=201)


@router.get("/vehicles-available")
async def available_vehicles(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Available vehicles, cheapest first, optionally free over a date range."""
    vehicles = await AvailabilityChecker(db).available_vehicles(start_date, end_date)
    return respond(dump_many(vehicles, VehicleOut))


@router.get("/vehicles/{vehicle_id}")
async def get_vehicle(
    vehicle_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    vehicle = await VehicleService(db).get(vehicle_id)
    return respond(dump(vehicle, VehicleOut))


@router.put("/vehicles/{vehicle_id}")
async def update_vehicle(
    vehicle_id: int,
    payload: VehicleUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    fields = payload.model_dump(exclude_unset=True, mode="json")
    vehicle = await VehicleService(db).update(user, vehicle_id, fields)
    return respond(dump(vehicle, VehicleOut), "Vehicle updated successfully")


@router.delete("/vehicles/{vehicle_id}")
async def delete_vehicle(
    vehicle_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await VehicleService(db).delete(user, vehicle_id)
    return respond(message="Vehicle deleted successfully")
