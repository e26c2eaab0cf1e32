from datetime import date, datetime, timezone
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from .models import BookingStatus, VerificationTier


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _utc_isoformat(value: datetime) -> str:
    # Stored timestamps are naive UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


UTCDateTime = Annotated[
    datetime, PlainSerializer(_utc_isoformat, return_type=str, when_used="json")
]


# ----- Users -----
class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8)
    display_name: str = Field(min_length=1)
    city: Optional[str] = None


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserUpdate(CamelModel):
    display_name: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = None
    phone: Optional[str] = None


class UserOut(CamelModel):
    id: int
    email: EmailStr
    display_name: str
    verification_tier: VerificationTier
    verified_at: Optional[UTCDateTime] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    created_at: UTCDateTime


class UserStats(CamelModel):
    listed_count: int
    rental_count: int
    rented_count: int


class OwnerSummary(CamelModel):
    id: int
    display_name: str
    verification_tier: VerificationTier


class Counterparty(CamelModel):
    display_name: str
    email: EmailStr


# ----- Auth -----
class AuthResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class MessageOut(CamelModel):
    message: str


# ----- Categories -----
class CategoryOut(CamelModel):
    id: int
    name: str
    slug: str
    icon: Optional[str] = None
    parent_id: Optional[int] = None


# ----- Tools -----
class ToolCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category_id: Optional[int] = None
    price_per_day: float = Field(ge=0)
    replacement_value: Optional[float] = Field(default=None, ge=0)
    condition: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    images: List[str] = []


class ToolUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    category_id: Optional[int] = None
    price_per_day: Optional[float] = Field(default=None, ge=0)
    replacement_value: Optional[float] = Field(default=None, ge=0)
    condition: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    images: Optional[List[str]] = None
    is_available: Optional[bool] = None


class ToolVersionOut(CamelModel):
    id: int
    tool_id: int
    name: str
    description: str
    category_id: Optional[int] = None
    price_per_day: float
    replacement_value: Optional[float] = None
    condition: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    images: List[str] = []
    created_at: UTCDateTime


class ToolOut(CamelModel):
    """Tool identity with its active version flattened in."""
    id: int
    owner_id: int
    is_available: bool
    active_version_id: int
    name: str
    description: str
    category_id: Optional[int] = None
    price_per_day: float
    replacement_value: Optional[float] = None
    condition: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    images: List[str] = []
    category: Optional[CategoryOut] = None
    owner: Optional[OwnerSummary] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime


# ----- Availability -----
class AvailabilityOut(CamelModel):
    booked_dates: List[str]
    manual_blocked_dates: List[str]


class AvailabilityUpdate(CamelModel):
    manual_blocked_dates: List[date]


# ----- Bookings -----
class BookingCreate(CamelModel):
    tool_id: int
    start_date: datetime
    end_date: datetime
    total_price: float = Field(ge=0)


class BookingStatusUpdate(CamelModel):
    status: BookingStatus

    @field_validator("status")
    @classmethod
    def not_pending(cls, value: BookingStatus) -> BookingStatus:
        # PENDING is only ever the initial state
        if value == BookingStatus.PENDING:
            raise ValueError("status must be one of APPROVED, REJECTED, CANCELLED, COMPLETED")
        return value


class BookingOut(CamelModel):
    id: int
    tool_id: int
    tool_version_id: int
    renter_id: int
    owner_id: int
    start_date: UTCDateTime
    end_date: UTCDateTime
    total_price: float
    status: BookingStatus
    created_at: UTCDateTime
    updated_at: UTCDateTime


class BookingDetailOut(BookingOut):
    """Booking plus the snapshotted version and the other party."""
    tool: ToolVersionOut
    owner: Optional[Counterparty] = None
    renter: Optional[Counterparty] = None


# ----- Auth internals -----
class TokenData(BaseModel):
    user_id: Optional[int] = None
    email: Optional[str] = None
