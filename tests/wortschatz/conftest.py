"""Shared fixtures for the library service and client tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from wortschatz.client.errors import (
    ConflictError,
    LibraryError,
    NotFoundError,
)
from wortschatz.client.gateway import AuthSession
from wortschatz.client.keys import build_key
from wortschatz.db.models import Base
from wortschatz.schemas.library import (
    Category,
    FavoriteAddRequest,
    FavoriteRemoveRequest,
    FavoriteRow,
    LibraryPage,
)
from wortschatz.utils.text import normalize_identity_text


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    """Provide an in-memory SQLite session for integration-style tests."""

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session = async_sessionmaker(engine, expire_on_commit=False)
    async with async_session() as db_session:
        yield db_session
        if db_session.in_transaction():
            await db_session.rollback()
    await engine.dispose()


class MemoryCache:
    """In-memory cache double that mimics :class:`wortschatz.cache.CacheClient`."""

    def __init__(self) -> None:
        self.store: dict[str, object] = {}
        self.ttls: dict[str, int | None] = {}
        self.deleted: list[str] = []

    async def get_json(self, key: str) -> object | None:
        return self.store.get(key)

    async def set_json(self, key: str, value: object, ttl: int | None = None) -> None:
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self.store.pop(key, None)
            self.deleted.append(key)


class FakeGateway:
    """In-memory stand-in for the library API with call recording.

    ``gate`` (when set) blocks every add/remove until the event fires, which
    lets tests hold a transaction open. ``add_errors`` maps a sense index to
    the exception raised for it; ``remove_error`` and ``list_error`` fail the
    respective calls.
    """

    def __init__(self) -> None:
        self.rows: list[FavoriteRow] = []
        self.categories: list[Category] = []
        self.calls: list[tuple[str, object]] = []
        self.gate: asyncio.Event | None = None
        self.add_errors: dict[int, LibraryError] = {}
        self.remove_error: LibraryError | None = None
        self.list_error: LibraryError | None = None
        self.category_errors: dict[str, LibraryError] = {}
        self._row_ids = count(1)
        self._category_ids = count(1)
        self._clock = datetime(2026, 1, 1, tzinfo=UTC)

    # -- seeding helpers --------------------------------------------------------

    def seed_category(self, name: str) -> Category:
        category = Category(
            id=next(self._category_ids), name=name, order_index=len(self.categories)
        )
        self.categories.append(category)
        return category

    def seed_row(
        self, headword: str, canonical_pos: str, *, sense_index: int = 0, category_id: int
    ) -> FavoriteRow:
        self._clock += timedelta(seconds=1)
        row = FavoriteRow(
            id=next(self._row_ids),
            headword=headword,
            canonical_pos=canonical_pos,
            sense_index=sense_index,
            category_id=category_id,
            created_at=self._clock,
        )
        self.rows.append(row)
        return row

    def calls_named(self, name: str) -> list[object]:
        return [payload for call, payload in self.calls if call == name]

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()

    # -- favorites ---------------------------------------------------------------

    async def list_page(
        self,
        auth: AuthSession,
        *,
        category_id: int | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> LibraryPage:
        items = await self.list_all(auth, category_id=category_id)
        return LibraryPage(items=items, next_cursor=None, limit=limit or 50)

    async def list_all(
        self, auth: AuthSession, *, category_id: int | None = None
    ) -> list[FavoriteRow]:
        self.calls.append(("list", category_id))
        await asyncio.sleep(0)
        if self.list_error is not None:
            raise self.list_error
        rows = [
            row
            for row in self.rows
            if category_id is None or row.category_id == category_id
        ]
        return sorted(rows, key=lambda row: (row.created_at, row.id), reverse=True)

    async def add(self, auth: AuthSession, payload: FavoriteAddRequest) -> None:
        self.calls.append(("add", payload))
        await self._wait()
        error = self.add_errors.get(payload.sense_index)
        if error is not None:
            raise error
        category_id = payload.category_id
        if category_id is None:
            category_id = (self.categories or [self.seed_category("Meine Favoriten")])[0].id
        key = build_key(payload)
        for position, row in enumerate(self.rows):
            if (
                build_key(row) == key
                and row.category_id == category_id
                and row.sense_index == payload.sense_index
            ):
                updates = {}
                if payload.familiarity is not None:
                    updates["familiarity"] = payload.familiarity
                if payload.is_hidden is not None:
                    updates["is_hidden"] = payload.is_hidden
                self.rows[position] = row.model_copy(update=updates)
                return
        row = self.seed_row(
            payload.headword,
            payload.canonical_pos,
            sense_index=payload.sense_index,
            category_id=category_id,
        )
        self.rows[-1] = row.model_copy(
            update={
                "headword_gloss": payload.headword_gloss,
                "headword_gloss_lang": payload.headword_gloss_lang,
                "familiarity": payload.familiarity,
                "is_hidden": bool(payload.is_hidden),
            }
        )

    async def remove(self, auth: AuthSession, payload: FavoriteRemoveRequest) -> int:
        self.calls.append(("remove", payload))
        await self._wait()
        if self.remove_error is not None:
            raise self.remove_error
        key = build_key(payload)
        kept = [
            row
            for row in self.rows
            if not (build_key(row) == key and row.category_id == payload.category_id)
        ]
        removed = len(self.rows) - len(kept)
        self.rows = kept
        return removed

    # -- categories ----------------------------------------------------------------

    def _fail(self, operation: str) -> None:
        error = self.category_errors.get(operation)
        if error is not None:
            raise error

    def _require(self, category_id: int) -> int:
        for position, category in enumerate(self.categories):
            if category.id == category_id:
                return position
        raise NotFoundError(f"Category {category_id} not found")

    async def list_categories(self, auth: AuthSession) -> list[Category]:
        self.calls.append(("list_categories", None))
        self._fail("list")
        return sorted(self.categories, key=lambda item: item.order_index)

    async def create_category(self, auth: AuthSession, name: str) -> Category:
        self.calls.append(("create_category", name))
        self._fail("create")
        if any(
            normalize_identity_text(item.name) == normalize_identity_text(name)
            for item in self.categories
        ):
            raise ConflictError(f"A category named '{name}' already exists")
        return self.seed_category(name)

    async def rename_category(self, auth: AuthSession, category_id: int, name: str) -> Category:
        self.calls.append(("rename_category", (category_id, name)))
        self._fail("rename")
        position = self._require(category_id)
        renamed = self.categories[position].model_copy(update={"name": name})
        self.categories[position] = renamed
        return renamed

    async def reorder_categories(self, auth: AuthSession, ids: list[int]) -> list[Category]:
        self.calls.append(("reorder_categories", list(ids)))
        self._fail("reorder")
        lookup = {item.id: item for item in self.categories}
        self.categories = [
            lookup[category_id].model_copy(update={"order_index": index})
            for index, category_id in enumerate(ids)
        ]
        return list(self.categories)

    async def archive_category(self, auth: AuthSession, category_id: int) -> None:
        self.calls.append(("archive_category", category_id))
        self._fail("archive")
        position = self._require(category_id)
        del self.categories[position]
        self.categories = [
            item.model_copy(update={"order_index": index})
            for index, item in enumerate(self.categories)
        ]


@pytest.fixture
def auth() -> AuthSession:
    return AuthSession(user_id="user-1", access_token="token-1")


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()
