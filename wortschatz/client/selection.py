"""Where the user's current favorites category is remembered."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from wortschatz.cache import CacheClient, selected_category_key

logger = logging.getLogger(__name__)

__all__ = ["CategorySelectionStore", "MemorySelectionStore", "RedisSelectionStore"]


@runtime_checkable
class CategorySelectionStore(Protocol):
    async def get_selected(self, user_id: str) -> int | None: ...

    async def set_selected(self, user_id: str, category_id: int | None) -> None: ...


def _coerce_category_id(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


class MemorySelectionStore:
    """Process-local selection store."""

    def __init__(self) -> None:
        self._selected: dict[str, int] = {}

    async def get_selected(self, user_id: str) -> int | None:
        return self._selected.get(user_id)

    async def set_selected(self, user_id: str, category_id: int | None) -> None:
        if category_id is None:
            self._selected.pop(user_id, None)
        else:
            self._selected[user_id] = category_id


class RedisSelectionStore:
    """Selection persisted as JSON through the shared :class:`CacheClient`.

    Redis outages behave like an empty store: reads return ``None`` and
    writes are dropped by the cache client.
    """

    def __init__(self, cache: CacheClient, *, ttl_seconds: int) -> None:
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    async def get_selected(self, user_id: str) -> int | None:
        raw = await self._cache.get_json(selected_category_key(user_id))
        if raw is None:
            return None
        selected = _coerce_category_id(raw)
        if selected is None:
            logger.warning("Ignoring malformed category selection for %s: %r", user_id, raw)
        return selected

    async def set_selected(self, user_id: str, category_id: int | None) -> None:
        key = selected_category_key(user_id)
        if category_id is None:
            await self._cache.delete(key)
            return
        await self._cache.set_json(key, category_id, ttl=self._ttl_seconds)
