from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import schemas, models
from ..config import get_settings
from ..database import get_db
from ..deps import get_current_user, require_verification_tier
from ..services import availability as availability_service
from ..services import tools as tool_service

settings = get_settings()

router = APIRouter(prefix="/tools", tags=["tools"])


@router.post("", response_model=schemas.ToolOut, status_code=status.HTTP_201_CREATED)
def create_tool(
    tool_in: schemas.ToolCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_verification_tier(settings.MIN_TIER_TO_LIST_TOOLS)),
):
    """
    List a new tool.

    The tool and its first version are created in a single transaction.

    Raises
    ------
    BadRequestError
        - 400 if ``categoryId`` does not exist.
    """
    return tool_service.create_tool(db, current_user.id, tool_in)


@router.get("", response_model=List[schemas.ToolOut])
def list_tools(
    db: Session = Depends(get_db),
    exclude: Optional[int] = None,
    category_id: Optional[int] = Query(None, alias="categoryId"),
):
    """
    Browse tools that are available for rent.

    Parameters
    ----------
    exclude : int, optional
        Leave out tools owned by this user id (the caller's own listings).
    categoryId : int, optional
        Only tools whose active version is in this category.
    """
    return tool_service.list_tools(db, exclude_owner_id=exclude, category_id=category_id)


@router.get("/mine", response_model=List[schemas.ToolOut])
def list_my_tools(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """The caller's listings, including ones marked unavailable."""
    return tool_service.list_owner_tools(db, current_user.id)


@router.get("/{tool_id}", response_model=schemas.ToolOut)
def get_tool(tool_id: int, db: Session = Depends(get_db)):
    return tool_service.get_tool(db, tool_id)


@router.patch("/{tool_id}", response_model=schemas.ToolOut)
def update_tool(
    tool_id: int,
    tool_update: schemas.ToolUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Edit a listing. *(Owner only)*

    ``isAvailable`` is changed in place. Any other field produces a new tool
    version; existing bookings keep the version they were made under.

    Raises
    ------
    NotFoundError
        - 404 if the tool does not exist or belongs to someone else.
    """
    return tool_service.update_tool(db, tool_id, current_user.id, tool_update)


@router.delete("/{tool_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tool(
    tool_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Remove a listing. *(Owner only)*

    Raises
    ------
    NotFoundError
        - 404 if the tool does not exist or belongs to someone else.
    ConflictError
        - 409 if the tool has bookings.
    """
    tool_service.delete_tool(db, tool_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{tool_id}/availability", response_model=schemas.AvailabilityOut)
def get_availability(tool_id: int, db: Session = Depends(get_db)):
    """
    Days from today on that cannot be booked.

    ``bookedDates`` come from pending and approved bookings,
    ``manualBlockedDates`` from the owner's calendar.
    """
    return availability_service.get_availability(db, tool_id)


@router.patch("/{tool_id}/availability", response_model=schemas.AvailabilityOut)
def update_availability(
    tool_id: int,
    payload: schemas.AvailabilityUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Replace the owner's manual blocks from today on. *(Owner only)*

    Raises
    ------
    BadRequestError
        - 400 with ``pastDates`` if any date is before today (UTC).
    ConflictError
        - 409 with ``conflictingDates`` if any date is already booked.
    """
    return availability_service.update_availability(
        db, tool_id, current_user.id, payload.manual_blocked_dates
    )
