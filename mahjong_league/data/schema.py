"""SQLAlchemy base class and mixins for league models.

This module provides the declarative base, the primary key generator and
the timestamp mixin shared by the team, player and game tables.

Keys are UUID strings assigned by the store. They appear in CSV and JSON
exports but are never reused on import.

Example:
    >>> from mahjong_league.data.schema import Base, TimestampMixin, new_id
    >>> class Season(TimestampMixin, Base):
    ...     __tablename__ = "seasons"
    ...     id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import event, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all league models.

    Every table must hang off this base so that init_db() and the
    in-memory test engines create it.
    """

    pass


def new_id() -> str:
    """Generate a primary key for a new record."""
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns.

    Both are set on insert; updated_at moves on every update, e.g. when a
    team is renamed or a player changes team.

    Attributes:
        created_at: Timestamp when record was created.
        updated_at: Timestamp when record was last updated.
    """

    created_at: Mapped[datetime] = mapped_column(
        default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


def _set_updated_at(
    mapper: Any,
    connection: Any,
    target: Any,
) -> None:
    """Event listener to update updated_at on modification."""
    # Seat rows carry only created_at
    if hasattr(target, "updated_at"):
        target.updated_at = datetime.now()


# Applies to every mapped subclass, including updates flushed through the ORM
event.listen(Base, "before_update", _set_updated_at, propagate=True)
