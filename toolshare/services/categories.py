from sqlalchemy.orm import Session

from .. import models
from ..errors import NotFoundError


def list_top_level(db: Session) -> list[models.Category]:
    return (
        db.query(models.Category)
        .filter(models.Category.parent_id.is_(None))
        .order_by(models.Category.name.asc())
        .all()
    )


def list_children(db: Session, parent_id: int) -> list[models.Category]:
    if db.get(models.Category, parent_id) is None:
        raise NotFoundError("Category not found")
    return (
        db.query(models.Category)
        .filter(models.Category.parent_id == parent_id)
        .order_by(models.Category.name.asc())
        .all()
    )
