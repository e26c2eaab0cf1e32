import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import utcnow
from ..deps import get_password_hash, verify_password
from ..errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(models.User.email == email.lower()).first()


def create_user(db: Session, user_in: schemas.UserCreate) -> models.User:
    if get_user_by_email(db, user_in.email):
        raise ConflictError("Email already registered")

    user = models.User(
        email=user_in.email.lower(),
        hashed_password=get_password_hash(user_in.password),
        display_name=user_in.display_name,
        city=user_in.city,
        verification_tier=models.VerificationTier.UNVERIFIED,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


def authenticate_user(db: Session, email: str, password: str) -> models.User | None:
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def list_users(db: Session) -> list[models.User]:
    return db.query(models.User).order_by(models.User.id.asc()).all()


def update_profile(db: Session, user: models.User, user_update: schemas.UserUpdate) -> models.User:
    for field, value in user_update.model_dump(exclude_unset=True).items():
        # city and phone can be cleared, the display name cannot
        if field == "display_name" and value is None:
            continue
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def update_verification_tier(
    db: Session, user_id: int, tier: models.VerificationTier
) -> models.User:
    """
    Set a user's verification tier.

    ``verified_at`` is stamped whenever the new tier is above UNVERIFIED and
    left as it was otherwise.
    """
    user = db.get(models.User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    tier = models.VerificationTier(tier)
    previous = user.verification_tier
    user.verification_tier = tier
    if tier != models.VerificationTier.UNVERIFIED:
        user.verified_at = utcnow()
    db.commit()
    db.refresh(user)
    logger.info(f"User {user_id} verification tier {previous.value} -> {tier.value}")
    return user


def get_stats(db: Session, user_id: int) -> dict:
    """Counts of tools listed, bookings received as owner and made as renter."""
    if db.get(models.User, user_id) is None:
        raise NotFoundError("User not found")

    listed = db.query(func.count(models.Tool.id)).filter(models.Tool.owner_id == user_id).scalar()
    received = (
        db.query(func.count(models.Booking.id)).filter(models.Booking.owner_id == user_id).scalar()
    )
    rented = (
        db.query(func.count(models.Booking.id)).filter(models.Booking.renter_id == user_id).scalar()
    )
    return {"listed_count": listed, "rental_count": received, "rented_count": rented}
