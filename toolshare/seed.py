"""
Standard tool categories.

Run manually with ``python -m toolshare.seed``; the API also seeds on startup
when ``SEED_CATEGORIES_ON_STARTUP`` is set. Seeding is idempotent: rows are
matched by slug and their name and icon refreshed.
"""
import logging

from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger(__name__)

# Icon names are MaterialCommunityIcons identifiers used by the mobile client
CATEGORIES = [
    {"name": "Power Tools", "slug": "power-tools", "icon": "power-plug"},
    {"name": "Hand Tools", "slug": "hand-tools", "icon": "hammer"},
    {"name": "Measuring & Levelling", "slug": "measuring-tools", "icon": "ruler"},
    {"name": "Drilling & Fastening", "slug": "drilling-fastening", "icon": "screw"},
    {"name": "Cutting & Grinding", "slug": "cutting-grinding", "icon": "content-cut"},
    {"name": "Sanding & Finishing", "slug": "sanding-finishing", "icon": "brush"},
    {"name": "Welding & Metalwork", "slug": "welding-metalwork", "icon": "torch"},
    {"name": "Plumbing", "slug": "plumbing", "icon": "pipe-wrench"},
    {"name": "Electrical", "slug": "electrical", "icon": "lightning-bolt"},
    {"name": "Garden & Outdoor", "slug": "garden-outdoor", "icon": "flower"},
    {"name": "Lifting & Moving", "slug": "lifting-moving", "icon": "crane"},
    {"name": "Ladders & Scaffolding", "slug": "ladders-scaffolding", "icon": "ladder"},
    {"name": "Cleaning & Pressure Washing", "slug": "cleaning-pressure", "icon": "spray-bottle"},
    {"name": "Other", "slug": "other", "icon": "dots-horizontal"},
]


def seed_categories(db: Session) -> int:
    """Upsert the standard categories. Returns how many were newly created."""
    existing = {c.slug: c for c in db.query(models.Category).all()}
    created = 0
    for cat in CATEGORIES:
        row = existing.get(cat["slug"])
        if row is None:
            db.add(models.Category(**cat))
            created += 1
        else:
            row.name = cat["name"]
            row.icon = cat["icon"]
    db.commit()
    logger.info(f"Seeded categories: {created} created, {len(CATEGORIES) - created} refreshed")
    return created


if __name__ == "__main__":
    from .database import Base, SessionLocal, engine

    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed_categories(session)
    finally:
        session.close()
