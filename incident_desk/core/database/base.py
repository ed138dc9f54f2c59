"""
Declarative base, ULID keys and timestamp columns shared by every model.
"""
from datetime import datetime
from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from ulid import ULID


# Canonical ULID text form is 26 characters
ULID_LENGTH = 26


def generate_ulid() -> str:
    return str(ULID())


def ulid_column(*args, **kwargs):
    """String column sized for a ULID, e.g. a primary or foreign key."""
    return mapped_column(String(ULID_LENGTH), *args, **kwargs)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    """created_at / updated_at maintained by the database."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
