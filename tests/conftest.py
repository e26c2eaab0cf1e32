"""
Pytest configuration and shared fixtures for testing the Toolshare API.
"""
import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SEED_CATEGORIES_ON_STARTUP"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import date, datetime, time, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from toolshare.database import Base, get_db
from toolshare.main import app
from toolshare.deps import get_password_hash
from toolshare.seed import seed_categories
from toolshare import models


# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def future_day(days: int) -> date:
    """A calendar day ``days`` after today (UTC)."""
    return utc_today() + timedelta(days=days)


def at_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min)


def get_auth_header(token: str) -> dict:
    """
    Helper function to create authorization header.
    """
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db_session):
    """
    Session factory bound to the test database, for code that opens its own sessions.
    """
    return TestingSessionLocal


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with the test database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db_session, email, display_name, password, tier=models.VerificationTier.UNVERIFIED):
    user = models.User(
        email=email,
        display_name=display_name,
        hashed_password=get_password_hash(password),
        verification_tier=tier,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def login(client, email, password) -> str:
    response = client.post("/auth/login", json={"email": email, "password": password})
    return response.json()["accessToken"]


@pytest.fixture
def owner_user(db_session):
    """
    A user who lists tools.
    """
    return make_user(db_session, "owner@example.com", "Olive Owner", "ownerpass123")


@pytest.fixture
def renter_user(db_session):
    """
    A user who rents tools.
    """
    return make_user(db_session, "renter@example.com", "Rory Renter", "renterpass123")


@pytest.fixture
def other_user(db_session):
    """
    A user with no stake in the sample tool or booking.
    """
    return make_user(db_session, "other@example.com", "Oscar Other", "otherpass123")


@pytest.fixture
def owner_token(client, owner_user):
    return login(client, "owner@example.com", "ownerpass123")


@pytest.fixture
def renter_token(client, renter_user):
    return login(client, "renter@example.com", "renterpass123")


@pytest.fixture
def other_token(client, other_user):
    return login(client, "other@example.com", "otherpass123")


@pytest.fixture
def categories(db_session):
    """
    The standard category set.
    """
    seed_categories(db_session)
    return {c.slug: c for c in db_session.query(models.Category).all()}


@pytest.fixture
def tool_payload(categories):
    return {
        "name": "Cordless Drill",
        "description": "18V drill with two batteries",
        "categoryId": categories["power-tools"].id,
        "pricePerDay": 20,
        "replacementValue": 150,
        "condition": "good",
        "latitude": 51.5,
        "longitude": -0.12,
        "images": ["https://img.example.com/drill.jpg"],
    }


@pytest.fixture
def sample_tool(client, owner_token, tool_payload):
    """
    A listed tool owned by ``owner_user``, created through the API.
    """
    response = client.post("/tools", json=tool_payload, headers=get_auth_header(owner_token))
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def sample_booking(db_session, sample_tool, owner_user, renter_user):
    """
    A pending booking by ``renter_user`` for days 10 to 12 from today.
    """
    booking = models.Booking(
        tool_id=sample_tool["id"],
        tool_version_id=sample_tool["activeVersionId"],
        renter_id=renter_user.id,
        owner_id=owner_user.id,
        start_date=at_midnight(future_day(10)),
        end_date=at_midnight(future_day(12)),
        total_price=60,
        status=models.BookingStatus.PENDING,
    )
    db_session.add(booking)
    db_session.commit()
    db_session.refresh(booking)
    return booking
