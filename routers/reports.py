"""
Reports Router
Version: 1.0

Ad-hoc report generation and stored report management. Staff only; the
capability check lives in ReportService.
DEPENDS ON: services/report_service.py
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models import User
from routers.responses import dump, dump_page, respond
from schemas import ReportCreate, ReportOut, ReportRange, ReportType
from security import get_current_user
from services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("")
async def list_reports(
    type: Optional[ReportType] = None,
    generated_by: Optional[int] = None,
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await ReportService(db).list_reports(
        user,
        report_type=type.value if type else None,
        generated_by=generated_by,
        page=page,
        per_page=per_page,
    )
    return respond(dump_page(result, ReportOut))


@router.post("")
async def create_report(
    payload: ReportCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    report = await ReportService(db).create(
        user, payload.title, payload.type.value, payload.start_date, payload.end_date
    )
    return respond(dump(report, ReportOut), "Report generated successfully", status_code=201)


async def _adhoc(report_type: ReportType, payload: ReportRange, user: User, db: AsyncSession):
    data = await ReportService(db).generate_adhoc(
        user, report_type.value, payload.start_date, payload.end_date
    )
    return respond(data)


@router.post("/revenue")
async def revenue_report(
    payload: ReportRange,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _adhoc(ReportType.REVENUE, payload, user, db)


@router.post("/utilization")
async def utilization_report(
    payload: ReportRange,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _adhoc(ReportType.UTILIZATION, payload, user, db)


@router.post("/booking-trends")
async def booking_trends_report(
    payload: ReportRange,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _adhoc(ReportType.BOOKING_TRENDS, payload, user, db)


@router.get("/{report_id}")
async def get_report(
    report_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    report = await ReportService(db).get(user, report_id)
    return respond(dump(report, ReportOut))


@router.delete("/{report_id}")
async def delete_report(
    report_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await ReportService(db).delete(user, report_id)
    return respond(message="Report deleted successfully")
