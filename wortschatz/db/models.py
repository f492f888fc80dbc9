"""SQLAlchemy ORM models for bearer sessions, favorite categories and favorite words.

The database is the single source of truth for favorites; clients only ever
mirror it. Each favorited *sense* of a headword is one ``user_words`` row, so a
headword with three senses saved into one category occupies three rows that
share ``(user_id, category_id, headword_key, pos_key)``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class UserSession(Base):
    """Bearer token issued to an authenticated user."""

    __tablename__ = "user_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token_hash: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        doc="SHA-256 hex digest of the bearer token; raw tokens are never stored.",
    )
    user_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class FavoriteCategory(Base):
    """A named, user-owned grouping of favorite words."""

    __tablename__ = "favorite_categories"
    __table_args__ = (
        Index("ix_favorite_categories_user_order", "user_id", "is_archived", "order_index"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(128),
        index=True,
        nullable=False,
        doc=(
            "Opaque identifier for the owning user as resolved from the bearer"
            " session (email, UUID or OAuth subject)."
        ),
    )
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    name_key: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        doc=(
            "Normalized name used for the case-insensitive uniqueness check"
            " among a user's non-archived categories."
        ),
    )
    order_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        doc="Zero-based display position kept dense across active categories.",
    )
    is_archived: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="0",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    words: Mapped[list["UserWord"]] = relationship(
        "UserWord",
        back_populates="category",
        cascade="all, delete-orphan",
    )


class UserWord(Base):
    """One favorited sense of a headword inside a category."""

    __tablename__ = "user_words"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "category_id",
            "headword_key",
            "pos_key",
            "sense_index",
            name="uq_user_words_identity",
        ),
        Index("ix_user_words_user_created", "user_id", "created_at", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("favorite_categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    headword: Mapped[str] = mapped_column(String(255), nullable=False)
    canonical_pos: Mapped[str] = mapped_column(String(64), nullable=False)
    headword_key: Mapped[str] = mapped_column(String(255), nullable=False)
    pos_key: Mapped[str] = mapped_column(String(64), nullable=False)
    sense_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        doc="Position of the sense in the headword's sense list.",
    )
    headword_gloss: Mapped[str] = mapped_column(
        String(1024), nullable=False, default="", server_default=""
    )
    headword_gloss_lang: Mapped[str | None] = mapped_column(String(16), nullable=True)
    familiarity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_hidden: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    category: Mapped[FavoriteCategory] = relationship(
        "FavoriteCategory", back_populates="words"
    )


__all__ = ["Base", "FavoriteCategory", "UserSession", "UserWord", "utcnow"]
