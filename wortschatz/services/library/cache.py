"""Caching helpers dedicated to library category lists."""

from __future__ import annotations

from pydantic import ValidationError

from wortschatz.cache import CacheClient, category_list_key
from wortschatz.schemas.library import Category, CategoryListResponse


class LibraryCache:
    """Typed read/write/invalidate helpers over :class:`CacheClient`.

    Only category lists are cached. Favorite rows are always read from the
    database so a reload issued right after a mutation observes that mutation.
    """

    def __init__(self, client: CacheClient, *, ttl_seconds: int) -> None:
        self._client = client
        self._ttl_seconds = ttl_seconds

    async def read_categories(self, *, user_id: str) -> CategoryListResponse | None:
        """Return a cached category list if present and well-formed."""

        cached = await self._client.get_json(category_list_key(user_id))
        if not isinstance(cached, dict):
            return None
        try:
            categories = [Category.model_validate(item) for item in cached.get("categories", [])]
        except ValidationError:
            return None
        return CategoryListResponse(categories=categories)

    async def write_categories(self, *, user_id: str, payload: CategoryListResponse) -> None:
        await self._client.set_json(
            category_list_key(user_id),
            payload.model_dump(mode="json"),
            ttl=self._ttl_seconds,
        )

    async def invalidate(self, *, user_id: str) -> None:
        """Delete the cached list after any category mutation."""

        await self._client.delete(category_list_key(user_id))
