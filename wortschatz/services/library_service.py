"""Business logic powering the library (favorites) API endpoints.

Persistence-oriented operations delegated to :class:`LibraryPersistence`:
* ``list_words`` – newest-first paged listing, optionally scoped to a category.
* ``upsert_word``/``delete_words`` – one sense row in, every sense row out.
* ``list_categories``/``create_category``/``rename_category``/
  ``reorder_categories``/``archive_category`` – category CRUD that keeps
  ``order_index`` dense.

Caching handled by :class:`LibraryCache`: the per-user category list is read
through Redis and invalidated after every category mutation.

Errors follow the conventions the routers translate into HTTP statuses:
``LookupError`` (404), :class:`CategoryConflictError` (409) and ``ValueError``
(400).
"""

from __future__ import annotations

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wortschatz.cache import CacheClient, get_cache_client
from wortschatz.db.connection import get_db
from wortschatz.db.models import FavoriteCategory
from wortschatz.schemas.library import (
    Category,
    CategoryListResponse,
    FavoriteAddRequest,
    FavoriteRemoveRequest,
    FavoriteRow,
    LibraryPage,
)
from wortschatz.services.library import (
    LibraryCache,
    LibraryPersistence,
    decode_cursor,
    encode_cursor,
)
from wortschatz.settings import get_settings

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 200


class CategoryConflictError(Exception):
    """Raised when a category name collides with another active category."""


def clamp_limit(limit: int | None, *, default: int) -> int:
    """Clamp ``limit`` into ``1..MAX_PAGE_SIZE``; missing or non-positive means default."""

    if limit is None or limit <= 0:
        return default
    return min(limit, MAX_PAGE_SIZE)


class LibraryService:
    """Orchestrates persistence and caching for one request."""

    def __init__(
        self,
        *,
        persistence: LibraryPersistence,
        cache: LibraryCache,
        default_category_name: str,
        default_page_size: int = 50,
    ) -> None:
        self._persistence = persistence
        self._cache = cache
        self._default_category_name = default_category_name
        self._default_page_size = default_page_size

    # -- favorites ---------------------------------------------------------

    async def list_library(
        self,
        *,
        user_id: str,
        limit: int | None = None,
        cursor: str | None = None,
        category_id: int | None = None,
    ) -> LibraryPage:
        page_size = clamp_limit(limit, default=self._default_page_size)
        rows = await self._persistence.list_words(
            user_id=user_id,
            limit=page_size,
            cursor=decode_cursor(cursor),
            category_id=category_id,
        )
        has_more = len(rows) > page_size
        page = rows[:page_size]
        next_cursor = (
            encode_cursor(page[-1].created_at, page[-1].id) if has_more and page else None
        )
        return LibraryPage(
            items=[FavoriteRow.model_validate(row) for row in page],
            next_cursor=next_cursor,
            limit=page_size,
        )

    async def add_favorite(self, *, user_id: str, payload: FavoriteAddRequest) -> FavoriteRow:
        category = await self._resolve_target_category(user_id, payload.category_id)
        word = await self._persistence.upsert_word(
            user_id=user_id, category_id=category.id, payload=payload
        )
        logger.debug(
            "Upserted %s/%s sense %s into category %s for %s",
            word.headword,
            word.canonical_pos,
            word.sense_index,
            category.id,
            user_id,
        )
        return FavoriteRow.model_validate(word)

    async def remove_favorite(self, *, user_id: str, payload: FavoriteRemoveRequest) -> int:
        removed = await self._persistence.delete_words(
            user_id=user_id,
            category_id=payload.category_id,
            headword=payload.headword,
            canonical_pos=payload.canonical_pos,
        )
        logger.debug(
            "Removed %s row(s) of %s/%s from category %s for %s",
            removed,
            payload.headword,
            payload.canonical_pos,
            payload.category_id,
            user_id,
        )
        return removed

    # -- categories --------------------------------------------------------

    async def list_categories(self, *, user_id: str) -> CategoryListResponse:
        cached = await self._cache.read_categories(user_id=user_id)
        if cached is not None:
            return cached

        categories = await self._persistence.list_categories(user_id=user_id)
        payload = CategoryListResponse(
            categories=[Category.model_validate(category) for category in categories]
        )
        await self._cache.write_categories(user_id=user_id, payload=payload)
        return payload

    async def create_category(self, *, user_id: str, name: str) -> Category:
        existing = await self._persistence.find_active_by_name(user_id=user_id, name=name)
        if existing is not None:
            raise CategoryConflictError(f"A category named '{existing.name}' already exists")

        category = await self._persistence.create_category(user_id=user_id, name=name)
        await self._cache.invalidate(user_id=user_id)
        return Category.model_validate(category)

    async def rename_category(self, *, user_id: str, category_id: int, name: str) -> Category:
        category = await self._require_category(user_id, category_id)
        clash = await self._persistence.find_active_by_name(
            user_id=user_id, name=name, exclude_id=category.id
        )
        if clash is not None:
            raise CategoryConflictError(f"A category named '{clash.name}' already exists")

        await self._persistence.rename_category(category, name)
        await self._cache.invalidate(user_id=user_id)
        return Category.model_validate(category)

    async def reorder_categories(
        self, *, user_id: str, ordered_ids: list[int]
    ) -> CategoryListResponse:
        categories = await self._persistence.list_categories(user_id=user_id)
        known = {category.id for category in categories}
        requested = set(ordered_ids)

        if len(requested) != len(ordered_ids):
            raise ValueError("Reorder payload contains duplicate ids")
        unknown = sorted(requested - known)
        if unknown:
            raise ValueError(f"Unknown category ids: {unknown}")
        missing = sorted(known - requested)
        if missing:
            raise ValueError(f"Reorder payload must list every category; missing {missing}")

        reordered = await self._persistence.reorder_categories(categories, ordered_ids)
        await self._cache.invalidate(user_id=user_id)
        return CategoryListResponse(
            categories=[Category.model_validate(category) for category in reordered]
        )

    async def archive_category(self, *, user_id: str, category_id: int) -> None:
        category = await self._require_category(user_id, category_id)
        await self._persistence.archive_category(category)
        await self._cache.invalidate(user_id=user_id)
        logger.info("Archived category %s for %s", category_id, user_id)

    # -- helpers -----------------------------------------------------------

    async def _require_category(self, user_id: str, category_id: int) -> FavoriteCategory:
        category = await self._persistence.load_category(user_id=user_id, category_id=category_id)
        if category is None:
            raise LookupError("Category not found")
        return category

    async def _resolve_target_category(
        self, user_id: str, category_id: int | None
    ) -> FavoriteCategory:
        if category_id is not None:
            return await self._require_category(user_id, category_id)

        categories = await self._persistence.list_categories(user_id=user_id)
        if categories:
            return categories[0]

        category = await self._persistence.create_category(
            user_id=user_id, name=self._default_category_name
        )
        await self._cache.invalidate(user_id=user_id)
        logger.info("Created default category %s for %s", category.id, user_id)
        return category


async def get_library_service(
    session: AsyncSession = Depends(get_db),
    cache_client: CacheClient = Depends(get_cache_client),
) -> LibraryService:
    """FastAPI dependency that wires the orchestrator together."""

    settings = get_settings()
    return LibraryService(
        persistence=LibraryPersistence(session),
        cache=LibraryCache(cache_client, ttl_seconds=settings.category_cache_ttl_seconds),
        default_category_name=settings.default_category_name,
        default_page_size=settings.library_page_size,
    )
