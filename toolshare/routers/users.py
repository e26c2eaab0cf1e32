from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from .. import schemas, models
from ..database import get_db
from ..deps import get_current_user
from ..services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[schemas.UserOut])
def list_users(
    db: Session = Depends(get_db),
    _: models.User = Depends(get_current_user),
):
    """
    List all registered users.

    Password hashes are never part of the response.
    """
    return user_service.list_users(db)


@router.patch("/me", response_model=schemas.UserOut)
def update_current_user(
    user_update: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Update the caller's display name, city or phone number.

    Email and verification tier cannot be changed here.
    """
    return user_service.update_profile(db, current_user, user_update)


@router.get("/me/stats", response_model=schemas.UserStats)
def read_current_user_stats(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Profile counters for the home screen.

    Returns
    -------
    UserStats
        ``listedCount`` tools owned, ``rentalCount`` bookings received as
        owner, ``rentedCount`` bookings made as renter.
    """
    return user_service.get_stats(db, current_user.id)
