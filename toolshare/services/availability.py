"""
Tool availability: days held by bookings plus days blocked by the owner.

All dates are UTC calendar days rendered as ISO ``YYYY-MM-DD`` strings, which
sort the same way lexicographically as chronologically.
"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..errors import BadRequestError, ConflictError, NotFoundError
from .tools import get_owned_tool

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _as_utc_date(value: date | datetime | str) -> date:
    if isinstance(value, str):
        return date.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def expand_days(start: date | datetime | str, end: date | datetime | str) -> set[str]:
    """
    Every calendar day from ``start`` to ``end`` inclusive, as ISO strings.

    Timestamps count for the UTC day they fall on and ISO date strings are
    accepted, so the result can be expanded again. An inverted range is empty.
    """
    day = _as_utc_date(start)
    last = _as_utc_date(end)
    days = set()
    while day <= last:
        days.add(day.isoformat())
        # date.max has no successor
        if day == last:
            break
        day += ONE_DAY
    return days


def _start_of_today() -> datetime:
    # Booking timestamps are stored as naive UTC
    return datetime.combine(utc_today(), time.min)


def active_bookings(db: Session, tool_id: int) -> list[models.Booking]:
    """PENDING or APPROVED bookings that have not ended before today."""
    return (
        db.query(models.Booking)
        .filter(
            models.Booking.tool_id == tool_id,
            models.Booking.status.in_(models.ACTIVE_BOOKING_STATUSES),
            models.Booking.end_date >= _start_of_today(),
        )
        .all()
    )


def booked_dates(db: Session, tool_id: int) -> set[str]:
    dates = set()
    for booking in active_bookings(db, tool_id):
        dates |= expand_days(booking.start_date, booking.end_date)
    return dates


def manual_blocked_dates(db: Session, tool_id: int) -> set[str]:
    blocks = (
        db.query(models.ToolDateBlock)
        .filter(
            models.ToolDateBlock.tool_id == tool_id,
            models.ToolDateBlock.date >= utc_today(),
        )
        .all()
    )
    return {block.date.isoformat() for block in blocks}


def get_availability(db: Session, tool_id: int) -> dict:
    if db.get(models.Tool, tool_id) is None:
        raise NotFoundError(f"Tool with ID {tool_id} not found")
    return {
        "booked_dates": sorted(booked_dates(db, tool_id)),
        "manual_blocked_dates": sorted(manual_blocked_dates(db, tool_id)),
    }


def update_availability(
    db: Session, tool_id: int, owner_id: int, dates: Iterable[date]
) -> dict:
    """
    Replace the owner's future manual blocks with ``dates``.

    Past days and days held by active bookings are rejected; nothing is
    written in that case. Blocks dated before today are left untouched.
    Concurrent replacements are last-writer-wins.
    """
    get_owned_tool(db, tool_id, owner_id)

    requested = {d.isoformat() for d in dates}
    today = utc_today().isoformat()

    past = sorted(d for d in requested if d < today)
    if past:
        raise BadRequestError("Cannot block dates in the past", pastDates=past)

    conflicts = sorted(requested & booked_dates(db, tool_id))
    if conflicts:
        logger.warning(f"Tool {tool_id}: manual blocks conflict with bookings on {conflicts}")
        raise ConflictError(
            "Some dates are already booked and cannot be blocked",
            conflictingDates=conflicts,
        )

    try:
        db.query(models.ToolDateBlock).filter(
            models.ToolDateBlock.tool_id == tool_id,
            models.ToolDateBlock.date >= utc_today(),
        ).delete(synchronize_session=False)
        db.add_all(
            models.ToolDateBlock(tool_id=tool_id, date=date.fromisoformat(d))
            for d in sorted(requested)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"Tool {tool_id}: manual blocks replaced ({len(requested)} days)")
    return get_availability(db, tool_id)
