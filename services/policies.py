"""
Authorization Policies
Version: 1.0

Capability-based authorization. Roles map to capabilities; every guarded
operation has one policy function that raises AuthorizationError when the
acting user may not perform it.
DEPENDS ON: services/errors.py, schemas.py
"""

from enum import Enum
from typing import Dict, FrozenSet, Protocol

from schemas import BookingStatus, Role
from services.errors import AuthorizationError


class Actor(Protocol):
    id: int
    role: str


class Capability(str, Enum):
    MANAGE_VEHICLES = "manage_vehicles"
    MANAGE_MAINTENANCE = "manage_maintenance"
    MANAGE_BOOKINGS = "manage_bookings"
    VIEW_ALL_BOOKINGS = "view_all_bookings"
    VIEW_ALL_ACTIVITIES = "view_all_activities"
    MANAGE_REPORTS = "manage_reports"
    SEND_NOTIFICATIONS = "send_notifications"
    VIEW_STATS = "view_stats"


_STAFF_CAPABILITIES: FrozenSet[Capability] = frozenset(Capability)

ROLE_CAPABILITIES: Dict[str, FrozenSet[Capability]] = {
    Role.ADMIN.value: _STAFF_CAPABILITIES,
    Role.STAFF.value: _STAFF_CAPABILITIES,
    Role.CUSTOMER.value: frozenset(),
}

# Statuses a customer may still withdraw from
CUSTOMER_CANCELLABLE = frozenset({BookingStatus.PENDING.value, BookingStatus.APPROVED.value})


def has_capability(actor: Actor, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(actor.role, frozenset())


def require(actor: Actor, capability: Capability) -> None:
    if not has_capability(actor, capability):
        raise AuthorizationError()


def is_elevated(actor: Actor) -> bool:
    return has_capability(actor, Capability.MANAGE_BOOKINGS)


# =============================================================================
# BOOKINGS
# =============================================================================

def can_view_booking(actor: Actor, booking) -> None:
    if booking.customer_id != actor.id and not has_capability(actor, Capability.VIEW_ALL_BOOKINGS):
        raise AuthorizationError()


def can_cancel_booking(actor: Actor, booking) -> None:
    if booking.customer_id != actor.id and not has_capability(actor, Capability.MANAGE_BOOKINGS):
        raise AuthorizationError()


def can_change_booking_status(actor: Actor, booking, new_status: str) -> None:
    """Staff change any status; an owner may only withdraw a booking."""
    if has_capability(actor, Capability.MANAGE_BOOKINGS):
        return
    if (
        booking.customer_id == actor.id
        and new_status == BookingStatus.CANCELLED.value
        and booking.status in CUSTOMER_CANCELLABLE
    ):
        return
    raise AuthorizationError()


# =============================================================================
# ACTIVITIES
# =============================================================================

def can_view_activity(actor: Actor, activity) -> None:
    if activity.user_id != actor.id and not has_capability(actor, Capability.VIEW_ALL_ACTIVITIES):
        raise AuthorizationError()


def can_view_user_activities(actor: Actor, user_id: int) -> None:
    if user_id != actor.id and not has_capability(actor, Capability.VIEW_ALL_ACTIVITIES):
        raise AuthorizationError()
