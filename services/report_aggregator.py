"""
Report Aggregator
Version: 1.0

Pure aggregation over booking / vehicle snapshots.
Each report filters the snapshot itself, so callers may pass a superset
of rows. Percentages and averages are rounded half up to 2 decimals, the average
rental duration to 1.
NO DEPENDENCIES on the database.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from schemas import BookingStatus

# Bookings that produced revenue / kept a vehicle busy
EARNING_STATUSES = frozenset({BookingStatus.COMPLETED.value, BookingStatus.ACTIVE.value})

UNKNOWN_TYPE = "unknown"

CENT = Decimal("0.01")
TENTH = Decimal("0.1")


@dataclass(frozen=True)
class BookingSnapshot:
    id: int
    vehicle_id: int
    vehicle_type: Optional[str]
    start_date: date
    end_date: date
    total_amount: Decimal
    status: str
    created_at: datetime


@dataclass(frozen=True)
class VehicleSnapshot:
    id: int
    type: str


def _days(booking: BookingSnapshot) -> int:
    return (booking.end_date - booking.start_date).days + 1


def _money(value) -> float:
    return float(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def _type_of(booking: BookingSnapshot) -> str:
    return booking.vehicle_type or UNKNOWN_TYPE


def _earning_in_range(bookings: Iterable[BookingSnapshot], start_date: date, end_date: date) -> List[BookingSnapshot]:
    return [
        b for b in bookings
        if b.status in EARNING_STATUSES and start_date <= b.start_date <= end_date
    ]


# =============================================================================
# REVENUE
# =============================================================================

def revenue_report(bookings: Iterable[BookingSnapshot], start_date: date, end_date: date) -> Dict[str, Any]:
    """Revenue of completed/active bookings starting inside the range."""
    selected = _earning_in_range(bookings, start_date, end_date)

    total = sum((Decimal(b.total_amount) for b in selected), Decimal("0"))
    count = len(selected)
    average = total / count if count else Decimal("0")

    by_type: Dict[str, Decimal] = defaultdict(Decimal)
    by_day: Dict[str, Decimal] = defaultdict(Decimal)
    for b in selected:
        by_type[_type_of(b)] += Decimal(b.total_amount)
        by_day[b.start_date.isoformat()] += Decimal(b.total_amount)

    return {
        "total_revenue": _money(total),
        "booking_count": count,
        "average_booking_value": _money(average),
        "revenue_by_type": {k: _money(v) for k, v in sorted(by_type.items())},
        "daily_revenue": {k: _money(v) for k, v in sorted(by_day.items())},
    }


# =============================================================================
# UTILIZATION
# =============================================================================

def _rate(used: int, available: int) -> float:
    if not available:
        return 0.0
    return _money(Decimal(used) * 100 / Decimal(available))


def utilization_report(
    vehicles: Iterable[VehicleSnapshot],
    bookings: Iterable[BookingSnapshot],
    start_date: date,
    end_date: date
) -> Dict[str, Any]:
    """Share of vehicle-days covered by completed/active bookings starting inside the range."""
    vehicles = list(vehicles)
    selected = _earning_in_range(bookings, start_date, end_date)

    total_days = (end_date - start_date).days + 1
    total_vehicle_days = len(vehicles) * total_days
    utilized_days = sum(_days(b) for b in selected)

    vehicles_by_type: Dict[str, List[int]] = defaultdict(list)
    for v in vehicles:
        vehicles_by_type[v.type].append(v.id)

    days_by_vehicle: Dict[int, int] = defaultdict(int)
    for b in selected:
        days_by_vehicle[b.vehicle_id] += _days(b)

    by_type = {}
    for vehicle_type, ids in sorted(vehicles_by_type.items()):
        type_days = sum(days_by_vehicle[i] for i in ids)
        by_type[vehicle_type] = {
            "total_vehicles": len(ids),
            "utilization_rate": _rate(type_days, len(ids) * total_days),
        }

    return {
        "total_vehicles": len(vehicles),
        "total_days": total_days,
        "utilized_days": utilized_days,
        "utilization_rate": _rate(utilized_days, total_vehicle_days),
        "utilization_by_type": by_type,
    }


# =============================================================================
# BOOKING TRENDS
# =============================================================================

def booking_trends_report(bookings: Iterable[BookingSnapshot], start_date: date, end_date: date) -> Dict[str, Any]:
    """Booking counts for bookings created inside the range, any status."""
    selected = [b for b in bookings if start_date <= b.created_at.date() <= end_date]

    by_status: Dict[str, int] = defaultdict(int)
    by_month: Dict[str, int] = defaultdict(int)
    by_type: Dict[str, int] = defaultdict(int)
    for b in selected:
        by_status[b.status] += 1
        by_month[b.created_at.strftime("%Y-%m")] += 1
        by_type[_type_of(b)] += 1

    total = len(selected)
    completed = [b for b in selected if b.status == BookingStatus.COMPLETED.value]
    average_duration = Decimal(sum(_days(b) for b in completed)) / len(completed) if completed else Decimal("0")

    return {
        "total_bookings": total,
        "bookings_by_status": dict(sorted(by_status.items())),
        "bookings_by_month": dict(sorted(by_month.items())),
        "bookings_by_type": dict(sorted(by_type.items())),
        "success_rate": _rate(len(completed), total),
        "average_duration": float(average_duration.quantize(TENTH, rounding=ROUND_HALF_UP)),
    }

