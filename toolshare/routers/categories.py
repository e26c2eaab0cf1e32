from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from .. import schemas
from ..database import get_db
from ..services import categories as category_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=List[schemas.CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    """Top-level categories, alphabetically."""
    return category_service.list_top_level(db)


@router.get("/{category_id}/children", response_model=List[schemas.CategoryOut])
def list_subcategories(category_id: int, db: Session = Depends(get_db)):
    return category_service.list_children(db, category_id)
