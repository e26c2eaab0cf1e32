"""
Unit tests for user endpoints.
"""
import asyncio

import pytest
from click.testing import CliRunner

from toolshare import cli as cli_module
from toolshare import models
from toolshare.deps import require_verification_tier
from toolshare.errors import NotFoundError
from toolshare.services.users import update_verification_tier


def get_auth_header(token: str) -> dict:
    """Helper function to create authorization header."""
    return {"Authorization": f"Bearer {token}"}


class TestUserListing:
    """Tests for listing users."""

    def test_list_users(self, client, owner_user, renter_user, owner_token):
        """Test authenticated users can list accounts without hashes."""
        response = client.get("/users", headers=get_auth_header(owner_token))
        assert response.status_code == 200
        users = response.json()
        assert {u["email"] for u in users} == {"owner@example.com", "renter@example.com"}
        assert all("hashedPassword" not in u for u in users)

    def test_list_users_requires_auth(self, client):
        """Test listing users requires authentication."""
        response = client.get("/users")
        assert response.status_code == 401


class TestProfileUpdate:
    """Tests for updating the current user's profile."""

    def test_update_profile(self, client, owner_user, owner_token):
        """Test display name, city and phone can be changed."""
        response = client.patch(
            "/users/me",
            headers=get_auth_header(owner_token),
            json={"displayName": "Olive O.", "city": "York", "phone": "+441234567890"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["displayName"] == "Olive O."
        assert data["city"] == "York"
        assert data["phone"] == "+441234567890"

    def test_partial_update_keeps_other_fields(self, client, owner_user, owner_token):
        """Test unset fields are left alone."""
        client.patch("/users/me", headers=get_auth_header(owner_token), json={"city": "Bath"})
        response = client.patch(
            "/users/me", headers=get_auth_header(owner_token), json={"phone": "0123"}
        )
        data = response.json()
        assert data["city"] == "Bath"
        assert data["phone"] == "0123"
        assert data["displayName"] == "Olive Owner"

    def test_cannot_change_tier_or_email(self, client, owner_user, owner_token):
        """Test fields outside the profile are ignored."""
        response = client.patch(
            "/users/me",
            headers=get_auth_header(owner_token),
            json={"verificationTier": "TIER_3", "email": "hijack@example.com"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["verificationTier"] == "UNVERIFIED"
        assert data["email"] == "owner@example.com"


class TestUserStats:
    """Tests for profile statistics."""

    def test_stats_empty(self, client, owner_user, owner_token):
        """Test a new account has zero counts."""
        response = client.get("/users/me/stats", headers=get_auth_header(owner_token))
        assert response.status_code == 200
        assert response.json() == {"listedCount": 0, "rentalCount": 0, "rentedCount": 0}

    def test_stats_counts(
        self, client, db_session, sample_tool, sample_booking, owner_token, renter_token
    ):
        """Test owner and renter counters reflect tools and bookings."""
        owner_stats = client.get("/users/me/stats", headers=get_auth_header(owner_token)).json()
        assert owner_stats == {"listedCount": 1, "rentalCount": 1, "rentedCount": 0}

        renter_stats = client.get("/users/me/stats", headers=get_auth_header(renter_token)).json()
        assert renter_stats == {"listedCount": 0, "rentalCount": 0, "rentedCount": 1}


class TestVerificationTierUpdate:
    """Tests for promoting users between verification tiers."""

    def test_promotion_stamps_verified_at(self, client, db_session, owner_user, owner_token):
        """Test a tier above UNVERIFIED records when verification happened."""
        user = update_verification_tier(db_session, owner_user.id, models.VerificationTier.TIER_1)
        assert user.verification_tier == models.VerificationTier.TIER_1
        assert user.verified_at is not None

        data = client.get("/auth/me", headers=get_auth_header(owner_token)).json()
        assert data["verificationTier"] == "TIER_1"
        assert data["verifiedAt"].endswith("Z")

    def test_demotion_keeps_verified_at(self, db_session, owner_user):
        """Test dropping back to UNVERIFIED leaves the last stamp alone."""
        promoted = update_verification_tier(db_session, owner_user.id, "TIER_2")
        stamp = promoted.verified_at

        user = update_verification_tier(
            db_session, owner_user.id, models.VerificationTier.UNVERIFIED
        )
        assert user.verification_tier == models.VerificationTier.UNVERIFIED
        assert user.verified_at == stamp

    def test_unverified_user_stays_unstamped(self, db_session, owner_user):
        user = update_verification_tier(
            db_session, owner_user.id, models.VerificationTier.UNVERIFIED
        )
        assert user.verified_at is None

    def test_missing_user(self, db_session):
        with pytest.raises(NotFoundError):
            update_verification_tier(db_session, 99999, models.VerificationTier.TIER_1)


class TestSetTierCommand:
    """Tests for the ``set-tier`` operator command."""

    def test_set_tier(self, db_session, session_factory, owner_user, monkeypatch):
        monkeypatch.setattr(cli_module, "SessionLocal", session_factory)

        result = CliRunner().invoke(cli_module.cli, ["set-tier", "OWNER@example.com", "tier_3"])

        assert result.exit_code == 0, result.output
        assert "owner@example.com is now TIER_3" in result.output
        db_session.refresh(owner_user)
        assert owner_user.verification_tier == models.VerificationTier.TIER_3
        assert owner_user.verified_at is not None

    def test_unknown_email(self, db_session, session_factory, monkeypatch):
        monkeypatch.setattr(cli_module, "SessionLocal", session_factory)

        result = CliRunner().invoke(cli_module.cli, ["set-tier", "ghost@example.com", "TIER_1"])

        assert result.exit_code == 1
        assert "No user with email ghost@example.com" in result.output

    def test_invalid_tier(self, db_session, session_factory, owner_user, monkeypatch):
        monkeypatch.setattr(cli_module, "SessionLocal", session_factory)

        result = CliRunner().invoke(cli_module.cli, ["set-tier", "owner@example.com", "GOLD"])

        assert result.exit_code == 2

    def test_promoted_user_passes_tier_gate(
        self, db_session, session_factory, owner_user, monkeypatch
    ):
        """Test a tier set by the command satisfies the rental gate."""
        monkeypatch.setattr(cli_module, "SessionLocal", session_factory)
        CliRunner().invoke(cli_module.cli, ["set-tier", "owner@example.com", "TIER_2"])

        checker = require_verification_tier(models.VerificationTier.TIER_2)
        db_session.refresh(owner_user)
        user = asyncio.run(checker(current_user=owner_user))
        assert user.id == owner_user.id
