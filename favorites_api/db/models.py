"""SQLAlchemy ORM model for the favorite movies and TV shows catalogue.

A single table backs the whole service.  Column lengths and the (title, year)
unique constraint mirror the rules enforced by the validation layer so that a
write that slips past the application checks still fails at the storage level.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from favorites_api.schemas.entries import EntryType
from favorites_api.utils.timefmt import utcnow


class Base(DeclarativeBase):
    pass


class FavoriteEntry(Base):
    """One movie or TV show in the catalogue."""

    __tablename__ = "favorite_entries"
    __table_args__ = (
        UniqueConstraint("title", "year", name="uq_favorite_entries_title_year"),
        Index("ix_favorite_entries_created_at_id", "created_at", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    type: Mapped[EntryType] = mapped_column(
        Enum(
            EntryType,
            name="favorite_entry_type",
            values_callable=lambda members: [member.value for member in members],
            validate_strings=True,
        ),
        nullable=False,
        index=True,
    )
    director: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    budget: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        doc="Production budget in whole currency units (0 - 999,999,999,999).",
    )
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    duration: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Free text such as '152 minutes' or '5 seasons'.",
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"FavoriteEntry(id={self.id!r}, title={self.title!r}, year={self.year!r})"


__all__ = ["Base", "FavoriteEntry"]
