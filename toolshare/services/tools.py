"""
Tool listings with copy-on-write versions.

A ``Tool`` row only holds identity, ownership, the availability flag and a
pointer to its active ``ToolVersion``. Editing listing data never touches an
existing version: a new one is created from the active version with the
edited fields overlaid, and the pointer moves to it. Bookings keep pointing at
the version they were made under.
"""
import enum
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from .. import models, schemas
from ..database import utcnow
from ..errors import BadRequestError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)

# Listing fields that live on ToolVersion
VERSION_FIELDS = (
    "name",
    "description",
    "category_id",
    "price_per_day",
    "replacement_value",
    "condition",
    "latitude",
    "longitude",
    "images",
)

# Version fields that may not be cleared by an update
REQUIRED_VERSION_FIELDS = {"name", "description", "price_per_day", "images"}


class Ownership(enum.Enum):
    AUTHORIZED = "authorized"
    # Missing tool and someone else's tool are the same case
    NOT_FOUND_OR_FORBIDDEN = "not_found_or_forbidden"


def check_ownership(tool: models.Tool | None, user_id: int) -> Ownership:
    if tool is None or tool.owner_id != user_id:
        return Ownership.NOT_FOUND_OR_FORBIDDEN
    return Ownership.AUTHORIZED


def get_owned_tool(db: Session, tool_id: int, owner_id: int) -> models.Tool:
    tool = db.get(models.Tool, tool_id)
    if check_ownership(tool, owner_id) is not Ownership.AUTHORIZED:
        raise NotFoundError(f"Tool with ID {tool_id} not found")
    return tool


def _tool_query(db: Session) -> Query:
    return db.query(models.Tool).options(
        joinedload(models.Tool.active_version).joinedload(models.ToolVersion.category),
        joinedload(models.Tool.owner),
    )


def compose_tool_view(tool: models.Tool) -> dict:
    """
    Flatten a tool and its active version into one mapping.

    ``id`` is written last so the stable tool id is never shadowed by the
    version's own id.
    """
    version = tool.active_version
    view = {
        "owner_id": tool.owner_id,
        "is_available": tool.is_available,
        "active_version_id": tool.active_version_id,
        "created_at": tool.created_at,
        "updated_at": tool.updated_at,
        "owner": tool.owner,
    }
    view.update({field: getattr(version, field) for field in VERSION_FIELDS})
    view["category"] = version.category
    view["id"] = tool.id
    return view


def _ensure_category(db: Session, category_id: int | None) -> None:
    if category_id is not None and db.get(models.Category, category_id) is None:
        raise BadRequestError(f"Unknown category {category_id}")


def list_tools(
    db: Session,
    exclude_owner_id: int | None = None,
    category_id: int | None = None,
) -> list[dict]:
    """Publicly listed tools, newest first."""
    query = _tool_query(db).filter(
        models.Tool.is_available == True,  # noqa: E712
        models.Tool.active_version_id.isnot(None),
    )
    if exclude_owner_id is not None:
        query = query.filter(models.Tool.owner_id != exclude_owner_id)
    if category_id is not None:
        query = query.join(
            models.ToolVersion, models.Tool.active_version_id == models.ToolVersion.id
        ).filter(models.ToolVersion.category_id == category_id)

    tools = query.order_by(models.Tool.created_at.desc(), models.Tool.id.desc()).all()
    return [compose_tool_view(t) for t in tools]


def list_owner_tools(db: Session, owner_id: int) -> list[dict]:
    tools = (
        _tool_query(db)
        .filter(models.Tool.owner_id == owner_id, models.Tool.active_version_id.isnot(None))
        .order_by(models.Tool.created_at.desc(), models.Tool.id.desc())
        .all()
    )
    return [compose_tool_view(t) for t in tools]


def get_tool(db: Session, tool_id: int) -> dict:
    tool = _tool_query(db).filter(models.Tool.id == tool_id).first()
    if tool is None or tool.active_version is None:
        raise NotFoundError(f"Tool with ID {tool_id} not found")
    return compose_tool_view(tool)


def create_tool(db: Session, owner_id: int, tool_in: schemas.ToolCreate) -> dict:
    """
    Insert a tool together with its first version in one transaction.

    The unit of work inserts the tool, then the version, then points the
    tool's ``active_version_id`` at the version (``post_update``).
    """
    _ensure_category(db, tool_in.category_id)

    tool = models.Tool(owner_id=owner_id, is_available=True)
    version = models.ToolVersion(**tool_in.model_dump())
    version.tool = tool
    tool.active_version = version
    try:
        db.add(tool)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"Tool {tool.id} listed by user {owner_id} (version {version.id})")
    return get_tool(db, tool.id)


def update_tool(
    db: Session, tool_id: int, owner_id: int, tool_update: schemas.ToolUpdate
) -> dict:
    """
    Apply a partial update.

    ``is_available`` is patched on the tool row. Any listing field creates a
    new version seeded from the active one.
    """
    tool = get_owned_tool(db, tool_id, owner_id)

    data = tool_update.model_dump(exclude_unset=True)
    is_available = data.pop("is_available", None)
    version_fields = {
        field: value
        for field, value in data.items()
        if field in VERSION_FIELDS
        and not (value is None and field in REQUIRED_VERSION_FIELDS)
    }
    if "category_id" in version_fields:
        _ensure_category(db, version_fields["category_id"])

    current = tool.active_version
    if version_fields and current is None:
        raise ConflictError(f"Tool {tool_id} has no active version")

    try:
        if is_available is not None:
            tool.is_available = is_available

        if version_fields:
            seed = {field: getattr(current, field) for field in VERSION_FIELDS}
            seed.update(version_fields)
            # JSON column: never share the list object with the old version
            seed["images"] = list(seed["images"] or [])

            new_version = models.ToolVersion(**seed)
            new_version.tool = tool
            tool.active_version = new_version
            tool.updated_at = utcnow()

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    if version_fields:
        logger.info(
            f"Tool {tool_id} moved to version {tool.active_version_id} "
            f"({', '.join(sorted(version_fields))})"
        )
    return get_tool(db, tool_id)


def delete_tool(db: Session, tool_id: int, owner_id: int) -> None:
    """
    Delete a tool with its versions and date blocks.

    Tools that have ever been booked are kept, since bookings reference their
    versions; owners can mark them unavailable instead.
    """
    tool = get_owned_tool(db, tool_id, owner_id)

    has_bookings = (
        db.query(models.Booking.id).filter(models.Booking.tool_id == tool_id).first() is not None
    )
    if has_bookings:
        raise ConflictError(
            "Tool has bookings and cannot be deleted; mark it unavailable instead"
        )

    try:
        # Break the tool <-> active version cycle before deleting
        tool.active_version = None
        db.flush()
        db.delete(tool)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info(f"Tool {tool_id} deleted by user {owner_id}")
