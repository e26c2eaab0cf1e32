"""
Rental requests and their lifecycle.

A booking snapshots the tool's active version and owner when it is created,
so later edits to the listing never change the terms it was made under.

Status moves through a fixed set of transitions::

    PENDING  -> APPROVED | REJECTED | CANCELLED
    APPROVED -> COMPLETED

REJECTED, CANCELLED and COMPLETED are terminal.
"""
import logging
from datetime import datetime, timezone

from pybreaker import CircuitBreakerError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas
from ..config import get_settings
from ..circuit_breaker import booking_circuit_breaker
from ..errors import (
    BadRequestError, ConflictError, ForbiddenError, NotFoundError, ServiceUnavailableError,
)
from .availability import booked_dates, expand_days, manual_blocked_dates

logger = logging.getLogger(__name__)

settings = get_settings()

Status = models.BookingStatus

ALLOWED_TRANSITIONS = {
    Status.PENDING: {Status.APPROVED, Status.REJECTED, Status.CANCELLED},
    Status.APPROVED: {Status.COMPLETED},
}

# Target statuses only the tool owner may set
OWNER_ONLY_STATUSES = {Status.APPROVED, Status.REJECTED, Status.COMPLETED}


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def create_booking(
    db: Session, renter_id: int, booking_in: schemas.BookingCreate
) -> models.Booking:
    tool = db.get(models.Tool, booking_in.tool_id)
    if tool is None:
        raise NotFoundError("Tool not found")
    if tool.owner_id == renter_id:
        raise BadRequestError("You cannot rent your own tool")
    if tool.active_version_id is None:
        raise BadRequestError("Tool is not properly configured for renting")
    if not tool.is_available:
        raise BadRequestError("Tool is not available for rent")

    start = _to_naive_utc(booking_in.start_date)
    end = _to_naive_utc(booking_in.end_date)
    if end < start:
        raise BadRequestError("endDate must not be before startDate")
    span = (end.date() - start.date()).days + 1
    if span > settings.MAX_BOOKING_DAYS:
        raise BadRequestError(
            f"Bookings may cover at most {settings.MAX_BOOKING_DAYS} days",
            requestedDays=span,
        )

    unavailable = booked_dates(db, tool.id) | manual_blocked_dates(db, tool.id)
    conflicts = sorted(expand_days(start, end) & unavailable)
    if conflicts:
        logger.warning(f"Booking request by user {renter_id} for tool {tool.id} overlaps {conflicts}")
        raise ConflictError(
            "Tool is not available on some of the requested dates",
            conflictingDates=conflicts,
        )

    booking = models.Booking(
        tool_id=tool.id,
        tool_version_id=tool.active_version_id,
        renter_id=renter_id,
        owner_id=tool.owner_id,
        start_date=start,
        end_date=end,
        total_price=booking_in.total_price,
        status=Status.PENDING,
    )

    @booking_circuit_breaker
    def _save_booking():
        try:
            db.add(booking)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        db.refresh(booking)
        return booking

    try:
        _save_booking()
    except CircuitBreakerError:
        logger.error("Booking persistence circuit is open, rejecting request")
        raise ServiceUnavailableError(
            "Booking service temporarily unavailable. Please try again later."
        )

    logger.info(
        f"Booking {booking.id} requested by user {renter_id} for tool {tool.id} "
        f"(version {booking.tool_version_id})"
    )
    return booking


def _booking_view(booking: models.Booking, counterparty: str) -> dict:
    view = {column.key: getattr(booking, column.key) for column in models.Booking.__table__.columns}
    view["tool"] = booking.tool_version
    view[counterparty] = getattr(booking, counterparty)
    return view


def list_renter_bookings(db: Session, renter_id: int) -> list[dict]:
    """Bookings the user made, with the owner as counterparty. Newest first."""
    bookings = (
        db.query(models.Booking)
        .options(joinedload(models.Booking.tool_version), joinedload(models.Booking.owner))
        .filter(models.Booking.renter_id == renter_id)
        .order_by(models.Booking.created_at.desc(), models.Booking.id.desc())
        .all()
    )
    return [_booking_view(b, "owner") for b in bookings]


def list_owner_bookings(db: Session, owner_id: int) -> list[dict]:
    """Requests received for the user's tools, with the renter as counterparty."""
    bookings = (
        db.query(models.Booking)
        .options(joinedload(models.Booking.tool_version), joinedload(models.Booking.renter))
        .filter(models.Booking.owner_id == owner_id)
        .order_by(models.Booking.created_at.desc(), models.Booking.id.desc())
        .all()
    )
    return [_booking_view(b, "renter") for b in bookings]


def _authorize_status_change(booking: models.Booking, actor_id: int, status: Status) -> None:
    if status in OWNER_ONLY_STATUSES:
        if actor_id != booking.owner_id:
            raise ForbiddenError(
                f"Only the tool owner can mark a booking {status.value.lower()}"
            )
    elif status == Status.CANCELLED:
        if actor_id not in (booking.renter_id, booking.owner_id):
            raise ForbiddenError("Not authorized to cancel this booking")


def update_status(
    db: Session, booking_id: int, actor_id: int, status: Status
) -> models.Booking:
    booking = db.get(models.Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")

    _authorize_status_change(booking, actor_id, status)

    previous = booking.status
    if status not in ALLOWED_TRANSITIONS.get(previous, set()):
        raise ConflictError(
            f"Cannot change booking from {previous.value} to {status.value}"
        )

    booking.status = status
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking_id}: {previous.value} -> {status.value} by user {actor_id}")
    return booking
