import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import models, schemas
from .config import get_settings
from .database import get_db

logger = logging.getLogger(__name__)

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


# ----- Passwords -----
def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


# ----- Tokens -----
def create_access_token(user: models.User, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(days=settings.JWT_EXPIRY_DAYS)
    )
    to_encode = {"sub": str(user.id), "email": user.email, "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> schemas.TokenData:
    """Raises ``JWTError`` for bad signatures, expired tokens and missing claims."""
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise JWTError("Token subject missing")
    return schemas.TokenData(user_id=int(subject), email=payload.get("email"))


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        token_data = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    user = db.get(models.User, token_data.user_id)
    if user is None:
        raise credentials_exception
    return user


def require_verification_tier(required: models.VerificationTier | str):
    """
    Usage: current_user: models.User = Depends(require_verification_tier("TIER_1"))
    """
    required = models.VerificationTier(required)

    async def tier_checker(current_user: models.User = Depends(get_current_user)) -> models.User:
        if not models.tier_at_least(current_user.verification_tier, required):
            logger.info(
                f"User {current_user.id} at {current_user.verification_tier.value} "
                f"refused, {required.value} required"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"This action requires {required.value} verification tier",
            )
        return current_user

    return tier_checker
