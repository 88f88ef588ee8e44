"""
Dashboard Router
Version: 1.0

Landing page summary, fleet statistics and the current user.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models import User
from routers.responses import dump, dump_many, respond
from schemas import ActivityOut, BookingOut, UserOut, VehicleOut
from security import get_current_user
from services.dashboard_service import DashboardService

router = APIRouter(tags=["dashboard"])


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return respond(dump(user, UserOut))


@router.get("/dashboard")
async def dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    overview = await DashboardService(db).overview(user)

    overview["recent_bookings"] = dump_many(overview["recent_bookings"], BookingOut)
    overview["recent_activities"] = dump_many(overview["recent_activities"], ActivityOut)
    if "current_booking" in overview:
        overview["current_booking"] = dump(overview["current_booking"], BookingOut)
    if "available_vehicles" in overview:
        overview["available_vehicles"] = dump_many(overview["available_vehicles"], VehicleOut)

    return respond(overview)


@router.get("/stats")
async def stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return respond(await DashboardService(db).stats(user))
