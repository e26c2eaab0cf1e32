from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from .. import schemas, models
from ..config import get_settings
from ..database import get_db
from ..deps import get_current_user, require_verification_tier
from ..services import bookings as booking_service

settings = get_settings()

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=schemas.BookingOut, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_in: schemas.BookingCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_verification_tier(settings.MIN_TIER_TO_RENT)),
):
    """
    Request to rent a tool.

    The booking records the tool's current version, so later edits to the
    listing do not change its terms. It starts as ``PENDING``.

    Raises
    ------
    NotFoundError
        - 404 if the tool does not exist.
    BadRequestError
        - 400 if the caller owns the tool, the tool is unlisted or has no
          version, or the dates are inverted.
    ConflictError
        - 409 with ``conflictingDates`` if any requested day is booked or blocked.
    ServiceUnavailableError
        - 503 while the booking persistence circuit is open.
    """
    return booking_service.create_booking(db, current_user.id, booking_in)


@router.get("/renter", response_model=List[schemas.BookingDetailOut])
def list_my_rentals(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Bookings the caller has made, newest first."""
    return booking_service.list_renter_bookings(db, current_user.id)


@router.get("/owner", response_model=List[schemas.BookingDetailOut])
def list_received_requests(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Booking requests for the caller's tools, newest first."""
    return booking_service.list_owner_bookings(db, current_user.id)


@router.patch("/{booking_id}/status", response_model=schemas.BookingOut)
def update_booking_status(
    booking_id: int,
    payload: schemas.BookingStatusUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Move a booking to a new status.

    - ``APPROVED``, ``REJECTED`` and ``COMPLETED`` may only be set by the owner.
    - ``CANCELLED`` may be set by the renter or the owner.

    Raises
    ------
    NotFoundError
        - 404 if the booking does not exist.
    ForbiddenError
        - 403 if the caller may not set this status.
    ConflictError
        - 409 if the booking cannot move from its current status.
    """
    return booking_service.update_status(db, booking_id, current_user.id, payload.status)
