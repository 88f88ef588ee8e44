"""
Booking Lifecycle Rules
Version: 1.0

Pure booking rules: the status transition table, inclusive-day pricing,
request validation and the side effects each operation implies.
Nothing here touches the database; BookingService applies the plans.
DEPENDS ON: schemas.py, services/errors.py, services/events.py

State machine:
    pending  -> approved | rejected | cancelled
    approved -> active | cancelled
    active   -> completed | cancelled
    rejected, completed, cancelled are terminal
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, FrozenSet, Iterable, List, Optional

from schemas import BookingStatus, NotificationType, VehicleStatus
from services.errors import ConflictError, ValidationError
from services.events import ActivityEvent, DomainEvent, NotificationEvent

PENDING = BookingStatus.PENDING.value
APPROVED = BookingStatus.APPROVED.value
REJECTED = BookingStatus.REJECTED.value
ACTIVE = BookingStatus.ACTIVE.value
COMPLETED = BookingStatus.COMPLETED.value
CANCELLED = BookingStatus.CANCELLED.value

TRANSITIONS: Dict[str, FrozenSet[str]] = {
    PENDING: frozenset({APPROVED, REJECTED, CANCELLED}),
    APPROVED: frozenset({ACTIVE, CANCELLED}),
    ACTIVE: frozenset({COMPLETED, CANCELLED}),
    REJECTED: frozenset(),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

# Statuses from which DELETE /bookings/{id} may withdraw a booking
CANCELLABLE_STATUSES = frozenset({PENDING, APPROVED})

# Entering these statuses makes the booking hold the vehicle
HOLDING_STATUSES = frozenset({APPROVED, ACTIVE})

MAX_NOTES_LENGTH = 500

CENT = Decimal("0.01")


# =============================================================================
# TRANSITIONS
# =============================================================================

def can_transition(current: str, new: str) -> bool:
    return new in TRANSITIONS.get(current, frozenset())


def assert_transition(current: str, new: str) -> None:
    if new not in TRANSITIONS:
        raise ValidationError.for_field("status", f"Unknown booking status '{new}'.")
    if not can_transition(current, new):
        allowed = sorted(TRANSITIONS.get(current, ()))
        raise ConflictError(
            f"Booking cannot move from {current} to {new}",
            {"status": [f"Allowed from {current}: {', '.join(allowed) or 'none'}."]}
        )


# =============================================================================
# PRICING
# =============================================================================

def rental_days(start_date: date, end_date: date) -> int:
    """Inclusive day count: the same day is one rental day."""
    if end_date < start_date:
        raise ValidationError.for_field("end_date", "The end date must not be before the start date.")
    return (end_date - start_date).days + 1


def quote_total(start_date: date, end_date: date, daily_rate) -> Decimal:
    """Total price for the range at the vehicle's daily rate."""
    rate = Decimal(str(daily_rate))
    return (rate * rental_days(start_date, end_date)).quantize(CENT, rounding=ROUND_HALF_UP)


# =============================================================================
# VALIDATION
# =============================================================================

def validate_booking_request(
    start_date: date,
    end_date: date,
    today: date,
    notes: Optional[str] = None
) -> None:
    """
    Field checks for a new booking.

    Raises:
        ValidationError carrying every failing field
    """
    errors: Dict[str, List[str]] = {}

    if start_date <= today:
        errors.setdefault("start_date", []).append("The start date must be a date after today.")
    if end_date <= start_date:
        errors.setdefault("end_date", []).append("The end date must be a date after the start date.")
    if notes is not None and len(notes) > MAX_NOTES_LENGTH:
        errors.setdefault("notes", []).append(f"The notes may not be greater than {MAX_NOTES_LENGTH} characters.")

    if errors:
        raise ValidationError("Validation error", errors)


# =============================================================================
# PLANS
# =============================================================================

@dataclass(frozen=True)
class BookingPlan:
    """What an operation changes. vehicle_status None leaves the vehicle alone."""
    booking_status: str
    vehicle_status: Optional[str] = None
    events: List[DomainEvent] = field(default_factory=list)


def _vehicle_name(vehicle) -> str:
    return f"{vehicle.make} {vehicle.model}"


def notification_type_for(status: str) -> str:
    if status == APPROVED:
        return NotificationType.SUCCESS.value
    if status == REJECTED:
        return NotificationType.ERROR.value
    return NotificationType.INFO.value


def plan_create(
    booking_id: int,
    customer_id: int,
    customer_name: str,
    vehicle,
    staff_user_ids: Iterable[int]
) -> BookingPlan:
    """A new booking starts pending; staff hear about it."""
    name = _vehicle_name(vehicle)
    events: List[DomainEvent] = [
        ActivityEvent(
            user_id=customer_id,
            action="created",
            entity="booking",
            entity_id=str(booking_id),
            details=f"Created booking for vehicle: {name}",
        )
    ]
    for staff_id in staff_user_ids:
        events.append(NotificationEvent(
            user_id=staff_id,
            title="New Booking Request",
            message=f"New booking request for {name} from {customer_name}",
            type=NotificationType.INFO.value,
        ))
    return BookingPlan(booking_status=PENDING, events=events)


def plan_status_change(booking, vehicle, new_status: str, actor_id: int) -> BookingPlan:
    """
    Plan a transition requested through PUT /bookings/{id}.

    Raises:
        ConflictError when the transition table forbids it
    """
    old_status = booking.status
    assert_transition(old_status, new_status)

    vehicle_status = None
    if new_status == ACTIVE:
        vehicle_status = VehicleStatus.RENTED.value
    elif old_status == ACTIVE and new_status in (COMPLETED, CANCELLED):
        vehicle_status = VehicleStatus.AVAILABLE.value

    name = _vehicle_name(vehicle)
    events: List[DomainEvent] = [
        ActivityEvent(
            user_id=actor_id,
            action="updated",
            entity="booking",
            entity_id=str(booking.id),
            details=f"Updated booking status from {old_status} to {new_status}",
        ),
        NotificationEvent(
            user_id=booking.customer_id,
            title="Booking Status Updated",
            message=f"Your booking for {name} has been {new_status}",
            type=notification_type_for(new_status),
        ),
    ]
    return BookingPlan(booking_status=new_status, vehicle_status=vehicle_status, events=events)


def plan_cancel(booking, vehicle, actor_id: int, vehicle_held_elsewhere: bool = False) -> BookingPlan:
    """
    Plan a cancellation requested through DELETE /bookings/{id}.

    A rented vehicle goes back to available unless another booking
    of it is currently active.

    Raises:
        ConflictError unless the booking is pending or approved
    """
    if booking.status not in CANCELLABLE_STATUSES:
        raise ConflictError("Booking cannot be cancelled")

    vehicle_status = None
    if vehicle.status == VehicleStatus.RENTED.value and not vehicle_held_elsewhere:
        vehicle_status = VehicleStatus.AVAILABLE.value

    events: List[DomainEvent] = [
        ActivityEvent(
            user_id=actor_id,
            action="cancelled",
            entity="booking",
            entity_id=str(booking.id),
            details=f"Cancelled booking for vehicle: {_vehicle_name(vehicle)}",
        )
    ]
    return BookingPlan(booking_status=CANCELLED, vehicle_status=vehicle_status, events=events)
