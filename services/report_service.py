"""
Report Service
Version: 1.0

Loads read-only snapshots for the aggregator and persists named reports.
Generation and persistence are separate: generate() only reads.
DEPENDS ON: models.py, services/report_aggregator.py, services/policies.py
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from database import transaction
from models import Booking, Report, User, Vehicle
from schemas import ReportType
from services import policies
from services import report_aggregator as aggregator
from services.errors import NotFoundError, ValidationError
from services.logging_config import LogTimer, get_logger
from services.metrics import REPORTS_GENERATED, REPORT_DURATION
from services.pagination import paginate

logger = logging.getLogger(__name__)
settings = get_settings()


def _validate_range(start_date: date, end_date: date) -> None:
    if end_date <= start_date:
        raise ValidationError.for_field("end_date", "The end date must be a date after the start date.")


class ReportService:
    """Revenue, utilization and booking-trend reports."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    async def _booking_snapshots(self, *conditions) -> List[aggregator.BookingSnapshot]:
        stmt = (
            select(
                Booking.id,
                Booking.vehicle_id,
                Vehicle.type,
                Booking.start_date,
                Booking.end_date,
                Booking.total_amount,
                Booking.status,
                Booking.created_at,
            )
            .outerjoin(Vehicle, Vehicle.id == Booking.vehicle_id)
            .where(*conditions)
        )
        rows = (await self.db.execute(stmt)).all()
        return [aggregator.BookingSnapshot(*row) for row in rows]

    async def _vehicle_snapshots(self) -> List[aggregator.VehicleSnapshot]:
        stmt = select(Vehicle.id, Vehicle.type).where(Vehicle.deleted_at.is_(None))
        rows = (await self.db.execute(stmt)).all()
        return [aggregator.VehicleSnapshot(*row) for row in rows]

    async def _earning_bookings(self, start_date: date, end_date: date):
        return await self._booking_snapshots(
            Booking.start_date.between(start_date, end_date),
            Booking.status.in_(aggregator.EARNING_STATUSES),
        )

    async def _created_bookings(self, start_date: date, end_date: date):
        since = datetime.combine(start_date, time.min)
        until = datetime.combine(end_date + timedelta(days=1), time.min)
        return await self._booking_snapshots(Booking.created_at >= since, Booking.created_at < until)

    # =========================================================================
    # GENERATION
    # =========================================================================

    async def generate(self, actor: User, report_type: str, start_date: date, end_date: date) -> Dict[str, Any]:
        """
        Aggregate one report kind over [start_date, end_date].

        Raises:
            AuthorizationError: customer actor
            ValidationError: unknown type or empty range
        """
        policies.require(actor, policies.Capability.MANAGE_REPORTS)
        _validate_range(start_date, end_date)

        with LogTimer(get_logger(__name__), "Report generation", type=report_type) as timer:
            if report_type == ReportType.REVENUE.value:
                bookings = await self._earning_bookings(start_date, end_date)
                data = aggregator.revenue_report(bookings, start_date, end_date)
            elif report_type == ReportType.UTILIZATION.value:
                bookings = await self._earning_bookings(start_date, end_date)
                vehicles = await self._vehicle_snapshots()
                data = aggregator.utilization_report(vehicles, bookings, start_date, end_date)
            elif report_type == ReportType.BOOKING_TRENDS.value:
                bookings = await self._created_bookings(start_date, end_date)
                data = aggregator.booking_trends_report(bookings, start_date, end_date)
            else:
                raise ValidationError.for_field("type", f"Unknown report type '{report_type}'.")

        REPORT_DURATION.labels(type=report_type).observe(timer.elapsed)
        return data

    async def create(
        self,
        actor: User,
        title: str,
        report_type: str,
        start_date: date,
        end_date: date
    ) -> Report:
        """Generate and persist a named report."""
        data = await self.generate(actor, report_type, start_date, end_date)

        async with transaction(self.db):
            report = Report(
                title=title,
                type=report_type,
                date_range={"start": start_date.isoformat(), "end": end_date.isoformat()},
                data=data,
                generated_by_user=actor,
            )
            self.db.add(report)
            await self.db.flush()

        REPORTS_GENERATED.labels(type=report_type, persisted="true").inc()
        logger.info(f"Report {report.id} '{title}' ({report_type}) saved by user {actor.id}")
        return report

    async def generate_adhoc(self, actor: User, report_type: str, start_date: date, end_date: date) -> Dict[str, Any]:
        data = await self.generate(actor, report_type, start_date, end_date)
        REPORTS_GENERATED.labels(type=report_type, persisted="false").inc()
        return data

    # =========================================================================
    # STORED REPORTS
    # =========================================================================

    async def get(self, actor: User, report_id: int) -> Report:
        policies.require(actor, policies.Capability.MANAGE_REPORTS)
        report = await self.db.get(Report, report_id)
        if report is None:
            raise NotFoundError.for_entity("Report", report_id)
        return report

    async def list_reports(
        self,
        actor: User,
        report_type: Optional[str] = None,
        generated_by: Optional[int] = None,
        page: int = 1,
        per_page: Optional[int] = None
    ) -> Dict[str, Any]:
        policies.require(actor, policies.Capability.MANAGE_REPORTS)
        stmt = select(Report)
        if report_type:
            stmt = stmt.where(Report.type == report_type)
        if generated_by is not None:
            stmt = stmt.where(Report.generated_by == generated_by)
        stmt = stmt.order_by(Report.created_at.desc(), Report.id.desc())
        return await paginate(self.db, stmt, page, per_page or settings.PAGE_SIZE)

    async def delete(self, actor: User, report_id: int) -> None:
        async with transaction(self.db):
            report = await self.get(actor, report_id)
            await self.db.delete(report)
        logger.info(f"Report {report_id} deleted by user {actor.id}")
