import enum

from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, DateTime, Date, Text, Float, JSON,
    Enum, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base, TimestampMixin, utcnow


class VerificationTier(str, enum.Enum):
    UNVERIFIED = "UNVERIFIED"
    TIER_1 = "TIER_1"
    TIER_2 = "TIER_2"
    TIER_3 = "TIER_3"


# Lowest to highest trust
TIER_ORDER = [
    VerificationTier.UNVERIFIED,
    VerificationTier.TIER_1,
    VerificationTier.TIER_2,
    VerificationTier.TIER_3,
]


def tier_at_least(tier: VerificationTier, required: VerificationTier) -> bool:
    return TIER_ORDER.index(tier) >= TIER_ORDER.index(required)


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


# Statuses that hold the tool's calendar
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.APPROVED)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    display_name = Column(String, nullable=False)
    verification_tier = Column(
        Enum(VerificationTier), nullable=False, default=VerificationTier.UNVERIFIED
    )
    verified_at = Column(DateTime, nullable=True)
    city = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    tools = relationship("Tool", back_populates="owner")
    rentals = relationship("Booking", foreign_keys="Booking.renter_id", back_populates="renter")
    received_bookings = relationship(
        "Booking", foreign_keys="Booking.owner_id", back_populates="owner"
    )


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    icon = Column(String, nullable=True)
    # null for top-level categories
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)

    parent = relationship("Category", remote_side=[id], back_populates="children")
    children = relationship("Category", back_populates="parent")


class Tool(TimestampMixin, Base):
    """
    Stable identity of a listing.

    Listing data lives in ``ToolVersion`` rows; ``active_version_id`` points at
    the one currently shown. Only ``is_available`` and the pointer ever change.
    """
    __tablename__ = "tools"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    is_available = Column(Boolean, default=True, nullable=False)
    active_version_id = Column(
        Integer,
        ForeignKey("tool_versions.id", use_alter=True, name="fk_tools_active_version_id"),
        nullable=True,
    )

    owner = relationship("User", back_populates="tools")
    versions = relationship(
        "ToolVersion",
        foreign_keys="ToolVersion.tool_id",
        back_populates="tool",
        cascade="all, delete-orphan",
        order_by="ToolVersion.id",
    )
    active_version = relationship(
        "ToolVersion", foreign_keys=[active_version_id], post_update=True
    )
    date_blocks = relationship(
        "ToolDateBlock", back_populates="tool", cascade="all, delete-orphan"
    )
    bookings = relationship("Booking", back_populates="tool")


class ToolVersion(Base):
    """Immutable snapshot of a tool's listing terms."""
    __tablename__ = "tool_versions"

    id = Column(Integer, primary_key=True, index=True)
    tool_id = Column(Integer, ForeignKey("tools.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    price_per_day = Column(Float, nullable=False)
    replacement_value = Column(Float, nullable=True)
    condition = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    images = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    tool = relationship("Tool", foreign_keys=[tool_id], back_populates="versions")
    category = relationship("Category")


class ToolDateBlock(Base):
    __tablename__ = "tool_date_blocks"
    __table_args__ = (UniqueConstraint("tool_id", "date", name="uq_tool_date_block"),)

    id = Column(Integer, primary_key=True, index=True)
    tool_id = Column(Integer, ForeignKey("tools.id"), nullable=False, index=True)
    # UTC calendar day
    date = Column(Date, nullable=False)

    tool = relationship("Tool", back_populates="date_blocks")


class Booking(TimestampMixin, Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    tool_id = Column(Integer, ForeignKey("tools.id"), nullable=False, index=True)
    # Terms the booking was made under
    tool_version_id = Column(Integer, ForeignKey("tool_versions.id"), nullable=False)
    renter_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    total_price = Column(Float, nullable=False)
    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.PENDING)

    tool = relationship("Tool", back_populates="bookings")
    tool_version = relationship("ToolVersion")
    renter = relationship("User", foreign_keys=[renter_id], back_populates="rentals")
    owner = relationship("User", foreign_keys=[owner_id], back_populates="received_bookings")
