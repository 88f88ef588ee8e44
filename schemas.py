"""
Pydantic Schemas
Version: 1.0

Request and response schemas plus the domain enums.
NO DEPENDENCIES on services.
"""

import datetime as dt
from datetime import date, datetime
from typing import Optional, List, Dict, Any, Generic, TypeVar
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


# === ENUMS ===

class Role(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    CUSTOMER = "customer"


ELEVATED_ROLES = (Role.ADMIN.value, Role.STAFF.value)


class VehicleStatus(str, Enum):
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"


class BookingStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ReportType(str, Enum):
    REVENUE = "revenue"
    UTILIZATION = "utilization"
    BOOKING_TRENDS = "booking-trends"


def _max_vehicle_year() -> int:
    return date.today().year + 1


def _check_url(v: Optional[str]) -> Optional[str]:
    if v and not v.startswith(("http://", "https://")):
        raise ValueError("image_url must be an http or https URL")
    return v


# === VEHICLE SCHEMAS ===

class VehicleCreate(BaseModel):
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1900)
    type: str = Field(..., min_length=1, max_length=50)
    rental_price: float = Field(..., ge=0, description="Daily rental rate")
    license_plate: str = Field(..., min_length=1, max_length=20)
    color: str = Field(..., max_length=50)
    fuel_type: str = Field(..., max_length=50)
    transmission: str = Field(..., max_length=50)
    seats: int = Field(..., ge=1, le=50)
    image_url: Optional[str] = Field(None, max_length=500)

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        if v > _max_vehicle_year():
            raise ValueError(f"year must not be after {_max_vehicle_year()}")
        return v

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: Optional[str]) -> Optional[str]:
        return _check_url(v)


class VehicleUpdate(BaseModel):
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=1900)
    type: Optional[str] = Field(None, min_length=1, max_length=50)
    rental_price: Optional[float] = Field(None, ge=0)
    status: Optional[VehicleStatus] = None
    license_plate: Optional[str] = Field(None, min_length=1, max_length=20)
    color: Optional[str] = Field(None, max_length=50)
    fuel_type: Optional[str] = Field(None, max_length=50)
    transmission: Optional[str] = Field(None, max_length=50)
    seats: Optional[int] = Field(None, ge=1, le=50)
    image_url: Optional[str] = Field(None, max_length=500)

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v > _max_vehicle_year():
            raise ValueError(f"year must not be after {_max_vehicle_year()}")
        return v

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: Optional[str]) -> Optional[str]:
        return _check_url(v)


# === BOOKING SCHEMAS ===

class BookingCreate(BaseModel):
    vehicle_id: int
    start_date: date
    end_date: date
    notes: Optional[str] = Field(None, max_length=500)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    notes: Optional[str] = Field(None, max_length=500)


# === MAINTENANCE SCHEMAS ===

class MaintenanceCreate(BaseModel):
    vehicle_id: int
    date: dt.date
    type: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    cost: float = Field(..., ge=0)
    performed_by: str = Field(..., min_length=1, max_length=100)


class MaintenanceUpdate(BaseModel):
    vehicle_id: Optional[int] = None
    date: Optional[dt.date] = None
    type: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    cost: Optional[float] = Field(None, ge=0)
    performed_by: Optional[str] = Field(None, min_length=1, max_length=100)


# === NOTIFICATION SCHEMAS ===

class NotificationCreate(BaseModel):
    user_id: int
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=1000)
    type: NotificationType


# === REPORT SCHEMAS ===

class ReportRange(BaseModel):
    start_date: date
    end_date: date


class ReportCreate(ReportRange):
    title: str = Field(..., min_length=1, max_length=255)
    type: ReportType


# === RESPONSE SCHEMAS ===

class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserOut(ORMModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None


class VehicleOut(ORMModel):
    id: int
    make: str
    model: str
    year: int
    type: str
    rental_price: float
    status: str
    license_plate: str
    color: str
    fuel_type: str
    transmission: str
    seats: int
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingOut(ORMModel):
    id: int
    customer_id: int
    vehicle_id: int
    start_date: date
    end_date: date
    total_amount: float
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    customer: Optional[UserOut] = None
    vehicle: Optional[VehicleOut] = None


class MaintenanceOut(ORMModel):
    id: int
    vehicle_id: int
    date: dt.date
    type: str
    description: str
    cost: float
    performed_by: str
    created_at: Optional[datetime] = None
    vehicle: Optional[VehicleOut] = None


class ActivityOut(ORMModel):
    id: int
    user_id: int
    action: str
    entity: str
    entity_id: str
    details: str
    timestamp: datetime
    user: Optional[UserOut] = None


class NotificationOut(ORMModel):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ReportOut(ORMModel):
    id: int
    title: str
    type: str
    date_range: Dict[str, Any]
    data: Dict[str, Any]
    generated_by: int
    created_at: Optional[datetime] = None
    generated_by_user: Optional[UserOut] = None


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    per_page: int
    last_page: int
