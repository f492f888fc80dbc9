"""Pydantic schemas that describe the library (favorites) API surface.

The same models are used on both sides of the wire: FastAPI validates request
bodies and serializes responses with them, and the client gateway parses
responses back into them.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wortschatz.utils.text import clean_text

_NAME_MAX_LENGTH = 64


def _require_text(value: object, field_name: str) -> str:
    cleaned = clean_text(value)
    if not cleaned:
        raise ValueError(f"{field_name} is required")
    return cleaned


class FavoriteRow(BaseModel):
    """One favorited sense of a headword, as listed by ``GET /library``."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = Field(
        None, description="Surrogate key; absent on rows inserted optimistically by the client"
    )
    headword: str
    canonical_pos: str
    sense_index: int = Field(0, ge=0)
    headword_gloss: str = ""
    headword_gloss_lang: str | None = None
    category_id: int | None = None
    familiarity: int | None = None
    is_hidden: bool = False
    created_at: datetime | None = None


class LibraryPage(BaseModel):
    """Cursor-paginated slice of the caller's favorites, newest first."""

    items: list[FavoriteRow] = Field(default_factory=list)
    next_cursor: str | None = Field(
        None, description="Opaque cursor for the following page; null on the last page"
    )
    limit: int


class FavoriteWordBase(BaseModel):
    """Headword + part-of-speech pair shared by add and remove payloads."""

    headword: str = Field(..., max_length=255)
    canonical_pos: str = Field(..., max_length=64)

    @field_validator("headword", mode="before")
    @classmethod
    def _clean_headword(cls, value: object) -> str:
        return _require_text(value, "headword")

    @field_validator("canonical_pos", mode="before")
    @classmethod
    def _clean_canonical_pos(cls, value: object) -> str:
        return _require_text(value, "canonical_pos")


class FavoriteAddRequest(FavoriteWordBase):
    """Upsert payload for a single sense row."""

    sense_index: int = Field(0, ge=0)
    headword_gloss: str = Field("", max_length=1024)
    headword_gloss_lang: str | None = Field(None, max_length=16)
    category_id: int | None = Field(
        None,
        gt=0,
        description="Target category; the user's default category is used when omitted.",
    )
    familiarity: int | None = Field(None, ge=0, le=5)
    is_hidden: bool | None = None


class FavoriteRemoveRequest(FavoriteWordBase):
    """Word-level removal: every sense of the identity inside one category."""

    category_id: int = Field(..., gt=0)


class OkResponse(BaseModel):
    ok: bool = True


class RemoveResponse(OkResponse):
    removed: int = Field(0, ge=0, description="Number of sense rows deleted")


class Category(BaseModel):
    """A named, ordered favorites category owned by one user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    order_index: int = Field(..., ge=0)


class CategoryListResponse(BaseModel):
    categories: list[Category] = Field(default_factory=list)


class CategoryNamePayload(BaseModel):
    """Body for create and rename requests."""

    name: str = Field(..., max_length=_NAME_MAX_LENGTH)

    @field_validator("name", mode="before")
    @classmethod
    def _clean_name(cls, value: object) -> str:
        return _require_text(value, "name")


class CategoryReorderRequest(BaseModel):
    """Full ordering of the caller's active categories."""

    ids: list[int] = Field(..., description="Every active category id exactly once")

    @field_validator("ids")
    @classmethod
    def _reject_duplicates(cls, value: list[int]) -> list[int]:
        if len(set(value)) != len(value):
            raise ValueError("ids must not contain duplicates")
        return value
