"""
Tests for booking lifecycle rules
Version: 1.0

Pure rules: transitions, pricing, request validation and plans.
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from services import booking_lifecycle as lifecycle
from services.errors import ConflictError, ValidationError
from services.events import ActivityEvent, NotificationEvent


def _booking(status="pending", booking_id=7, customer_id=3):
    return SimpleNamespace(id=booking_id, status=status, customer_id=customer_id)


def _vehicle(status="available"):
    return SimpleNamespace(id=1, make="Toyota", model="Corolla", status=status)


class TestTransitions:
    """Transition table."""

    @pytest.mark.parametrize("current,new", [
        ("pending", "approved"),
        ("pending", "rejected"),
        ("pending", "cancelled"),
        ("approved", "active"),
        ("approved", "cancelled"),
        ("active", "completed"),
        ("active", "cancelled"),
    ])
    def test_allowed(self, current, new):
        assert lifecycle.can_transition(current, new)
        lifecycle.assert_transition(current, new)

    @pytest.mark.parametrize("current,new", [
        ("pending", "active"),
        ("pending", "completed"),
        ("approved", "approved"),
        ("approved", "rejected"),
        ("completed", "active"),
        ("cancelled", "pending"),
        ("rejected", "approved"),
    ])
    def test_forbidden_raises_conflict(self, current, new):
        assert not lifecycle.can_transition(current, new)
        with pytest.raises(ConflictError) as exc:
            lifecycle.assert_transition(current, new)
        assert "status" in exc.value.errors

    def test_unknown_status_is_validation_error(self):
        with pytest.raises(ValidationError):
            lifecycle.assert_transition("pending", "teleported")

    def test_terminal_statuses(self):
        assert lifecycle.TERMINAL_STATUSES == {"rejected", "completed", "cancelled"}


class TestPricing:
    """Inclusive-day pricing."""

    def test_three_day_rental(self):
        assert lifecycle.rental_days(date(2024, 2, 1), date(2024, 2, 3)) == 3
        assert lifecycle.quote_total(date(2024, 2, 1), date(2024, 2, 3), Decimal("45.00")) == Decimal("135.00")

    def test_same_day_is_one_day(self):
        assert lifecycle.rental_days(date(2024, 2, 1), date(2024, 2, 1)) == 1

    def test_float_rate_rounds_to_cents(self):
        assert lifecycle.quote_total(date(2024, 2, 1), date(2024, 2, 2), 19.995) == Decimal("39.99")

    def test_reversed_range(self):
        with pytest.raises(ValidationError):
            lifecycle.rental_days(date(2024, 2, 3), date(2024, 2, 1))


class TestRequestValidation:

    def test_valid_request(self):
        lifecycle.validate_booking_request(date(2024, 2, 1), date(2024, 2, 3), today=date(2024, 1, 15))

    def test_start_today_rejected(self):
        with pytest.raises(ValidationError) as exc:
            lifecycle.validate_booking_request(date(2024, 1, 15), date(2024, 1, 20), today=date(2024, 1, 15))
        assert "start_date" in exc.value.errors

    def test_end_must_follow_start(self):
        with pytest.raises(ValidationError) as exc:
            lifecycle.validate_booking_request(date(2024, 2, 1), date(2024, 2, 1), today=date(2024, 1, 15))
        assert list(exc.value.errors) == ["end_date"]

    def test_reports_every_failing_field(self):
        with pytest.raises(ValidationError) as exc:
            lifecycle.validate_booking_request(
                date(2024, 1, 10), date(2024, 1, 5), today=date(2024, 1, 15), notes="x" * 501
            )
        assert set(exc.value.errors) == {"start_date", "end_date", "notes"}


class TestPlans:

    def test_create_notifies_every_staff_user(self):
        plan = lifecycle.plan_create(
            booking_id=9, customer_id=3, customer_name="Cara", vehicle=_vehicle(), staff_user_ids=[1, 2]
        )

        assert plan.booking_status == "pending"
        assert plan.vehicle_status is None
        activities = [e for e in plan.events if isinstance(e, ActivityEvent)]
        notifications = [e for e in plan.events if isinstance(e, NotificationEvent)]
        assert len(activities) == 1
        assert activities[0].action == "created" and activities[0].entity_id == "9"
        assert [n.user_id for n in notifications] == [1, 2]
        assert all(n.title == "New Booking Request" for n in notifications)
        assert "Toyota Corolla" in notifications[0].message

    def test_activation_rents_vehicle(self):
        plan = lifecycle.plan_status_change(_booking("approved"), _vehicle(), "active", actor_id=1)
        assert plan.booking_status == "active"
        assert plan.vehicle_status == "rented"

    @pytest.mark.parametrize("new_status", ["completed", "cancelled"])
    def test_leaving_active_frees_vehicle(self, new_status):
        plan = lifecycle.plan_status_change(_booking("active"), _vehicle("rented"), new_status, actor_id=1)
        assert plan.vehicle_status == "available"

    def test_approval_leaves_vehicle_alone(self):
        plan = lifecycle.plan_status_change(_booking("pending"), _vehicle(), "approved", actor_id=1)
        assert plan.vehicle_status is None

    @pytest.mark.parametrize("new_status,expected", [
        ("approved", "success"),
        ("rejected", "error"),
        ("cancelled", "info"),
    ])
    def test_customer_notification_type(self, new_status, expected):
        plan = lifecycle.plan_status_change(_booking("pending"), _vehicle(), new_status, actor_id=1)
        notification = next(e for e in plan.events if isinstance(e, NotificationEvent))
        assert notification.user_id == 3
        assert notification.title == "Booking Status Updated"
        assert notification.type == expected

    def test_status_change_activity_details(self):
        plan = lifecycle.plan_status_change(_booking("pending"), _vehicle(), "approved", actor_id=1)
        activity = next(e for e in plan.events if isinstance(e, ActivityEvent))
        assert activity.details == "Updated booking status from pending to approved"
        assert activity.user_id == 1

    @pytest.mark.parametrize("status", ["active", "completed", "rejected", "cancelled"])
    def test_cancel_outside_cancellable_states(self, status):
        with pytest.raises(ConflictError, match="Booking cannot be cancelled"):
            lifecycle.plan_cancel(_booking(status), _vehicle(), actor_id=3)

    def test_cancel_frees_rented_vehicle(self):
        plan = lifecycle.plan_cancel(_booking("approved"), _vehicle("rented"), actor_id=3)
        assert plan.booking_status == "cancelled"
        assert plan.vehicle_status == "available"

    def test_cancel_keeps_vehicle_held_by_other_booking(self):
        plan = lifecycle.plan_cancel(
            _booking("approved"), _vehicle("rented"), actor_id=3, vehicle_held_elsewhere=True
        )
        assert plan.vehicle_status is None
