import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import schemas, models
from ..database import get_db
from ..deps import create_access_token, get_current_user
from ..errors import AuthenticationError
from ..services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: models.User) -> dict:
    return {"access_token": create_access_token(user), "user": user}


@router.post("/signup", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(user_in: schemas.UserCreate, db: Session = Depends(get_db)):
    """
    Register a new account and sign it in.

    New accounts start at the ``UNVERIFIED`` tier.

    Raises
    ------
    ConflictError
        - 409 if the email is already registered.
    """
    user = user_service.create_user(db, user_in)
    return _auth_response(user)


@router.post("/login", response_model=schemas.AuthResponse)
def login(credentials: schemas.UserLogin, db: Session = Depends(get_db)):
    """
    Exchange email and password for a bearer token.

    Unknown emails and wrong passwords fail the same way.

    Raises
    ------
    AuthenticationError
        - 401 if the credentials are invalid.
    """
    user = user_service.authenticate_user(db, credentials.email, credentials.password)
    if not user:
        logger.warning("Rejected login attempt")
        raise AuthenticationError("Invalid credentials")
    return _auth_response(user)


@router.get("/me", response_model=schemas.UserOut)
def read_current_user(current_user: models.User = Depends(get_current_user)):
    return current_user


@router.post("/forgot-password", response_model=schemas.MessageOut)
def forgot_password(payload: schemas.ForgotPasswordRequest, db: Session = Depends(get_db)):
    """
    Start a password reset.

    The response is identical whether or not the account exists.
    """
    user = user_service.get_user_by_email(db, payload.email)
    if user:
        # TODO: send the reset link once an email transport is configured
        logger.info(f"Password reset requested for user {user.id}")
    return {"message": "If an account exists, a reset link has been sent."}
