"""
Database Models
Version: 1.0

SQLAlchemy ORM models for the rental domain.
DEPENDS ON: database.py
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    Text,
    Integer,
    Numeric,
    ForeignKey,
    Index,
    JSON,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, portable across PostgreSQL and SQLite."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """Application user. Authenticates with a bearer token stored as a SHA-256 hash."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(200), unique=True, nullable=False, index=True)
    phone = Column(String(30), nullable=True)
    role = Column(String(20), nullable=False, default="customer", index=True)
    api_token_hash = Column(String(64), unique=True, nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Vehicle(Base):
    """Rentable vehicle. Soft-deleted through deleted_at."""

    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    type = Column(String(50), nullable=False)
    rental_price = Column(Numeric(8, 2), nullable=False)
    status = Column(String(20), nullable=False, default="available")
    license_plate = Column(String(20), unique=True, nullable=False)
    color = Column(String(50), nullable=False)
    fuel_type = Column(String(50), nullable=False)
    transmission = Column(String(50), nullable=False)
    seats = Column(Integer, nullable=False)
    image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_vehicle_status", "status"),
        Index("ix_vehicle_type", "type"),
        Index("ix_vehicle_make_model", "make", "model"),
    )

    @property
    def display_name(self) -> str:
        return f"{self.make} {self.model}"


class Booking(Base):
    """Rental of one vehicle by one customer over an inclusive date range."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    customer = relationship("User", lazy="selectin")
    vehicle = relationship("Vehicle", lazy="selectin")

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_booking_date_order"),
        Index("ix_booking_customer", "customer_id"),
        Index("ix_booking_vehicle_status", "vehicle_id", "status"),
        Index("ix_booking_dates", "start_date", "end_date"),
    )


class MaintenanceRecord(Base):
    """Service history entry for a vehicle."""

    __tablename__ = "maintenance_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    type = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    cost = Column(Numeric(8, 2), nullable=False)
    performed_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    vehicle = relationship("Vehicle", lazy="selectin")

    __table_args__ = (
        Index("ix_maintenance_vehicle", "vehicle_id"),
        Index("ix_maintenance_date", "date"),
    )


class Activity(Base):
    """Audit trail. Append-only."""

    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    action = Column(String(50), nullable=False)
    entity = Column(String(50), nullable=False)
    entity_id = Column(String(100), nullable=False)
    details = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=utcnow, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", lazy="selectin")

    __table_args__ = (
        Index("ix_activity_user", "user_id"),
        Index("ix_activity_entity", "entity", "entity_id"),
        Index("ix_activity_timestamp", "timestamp"),
    )


class Notification(Base):
    """Message addressed to a single user."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="info")
    read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("ix_notification_user_read", "user_id", "read"),
    )


class Report(Base):
    """Persisted snapshot of an aggregated report."""

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    type = Column(String(30), nullable=False, index=True)
    date_range = Column(JSON, nullable=False)
    data = Column(JSON, nullable=False)
    generated_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    generated_by_user = relationship("User", lazy="selectin")
