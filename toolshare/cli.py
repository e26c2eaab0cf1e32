"""
Operator commands.

    toolshare seed-categories
    toolshare set-tier alice@example.com TIER_1
"""
import logging

import click

from . import models
from .database import Base, SessionLocal, engine
from .seed import seed_categories
from .services import users as user_service

TIER_NAMES = [tier.value for tier in models.VerificationTier]


@click.group()
def cli():
    logging.basicConfig(level=logging.INFO)


@cli.command("seed-categories")
def seed_categories_command():
    """Create or refresh the standard categories."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        created = seed_categories(db)
    finally:
        db.close()
    click.echo(f"{created} categories created")


@cli.command("set-tier")
@click.argument("email")
@click.argument("tier", type=click.Choice(TIER_NAMES, case_sensitive=False))
def set_tier(email, tier):
    """Set a user's verification tier by email."""
    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email.strip())
        if user is None:
            raise click.ClickException(f"No user with email {email}")
        user = user_service.update_verification_tier(db, user.id, tier.upper())
        click.echo(f"{user.email} is now {user.verification_tier.value}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
