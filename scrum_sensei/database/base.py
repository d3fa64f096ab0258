from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""


def utc_now_iso() -> str:
    """Return the current UTC time as the ISO-8601 text stored in timestamp columns."""
    return datetime.now(UTC).isoformat()


def new_id() -> str:
    """Generate a primary key for TEXT id columns."""
    return str(uuid4())
