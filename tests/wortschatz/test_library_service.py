"""Integration tests for the library service against an in-memory SQLite database."""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tests.wortschatz.conftest import MemoryCache
from wortschatz.cache import category_list_key
from wortschatz.db.models import FavoriteCategory, UserWord
from wortschatz.schemas.library import FavoriteAddRequest, FavoriteRemoveRequest
from wortschatz.services.library import LibraryCache, LibraryPersistence
from wortschatz.services.library_service import (
    CategoryConflictError,
    LibraryService,
    clamp_limit,
)

USER = "user-1"


def _service(session: AsyncSession, cache: MemoryCache, *, page_size: int = 50) -> LibraryService:
    return LibraryService(
        persistence=LibraryPersistence(session),
        cache=LibraryCache(cache, ttl_seconds=60),
        default_category_name="Meine Favoriten",
        default_page_size=page_size,
    )


def _add(headword: str, sense_index: int = 0, **extra: object) -> FavoriteAddRequest:
    return FavoriteAddRequest(
        headword=headword, canonical_pos="Nomen", sense_index=sense_index, **extra
    )


@pytest.mark.asyncio
async def test_add_without_category_creates_default(
    session: AsyncSession, memory_cache: MemoryCache
) -> None:
    service = _service(session, memory_cache)

    row = await service.add_favorite(user_id=USER, payload=_add("Haus"))

    categories = (await service.list_categories(user_id=USER)).categories
    assert [(item.name, item.order_index) for item in categories] == [("Meine Favoriten", 0)]
    assert row.category_id == categories[0].id

    again = await service.add_favorite(user_id=USER, payload=_add("Baum"))
    assert again.category_id == categories[0].id
    assert len((await service.list_categories(user_id=USER)).categories) == 1


@pytest.mark.asyncio
async def test_upsert_is_idempotent_and_preserves_status(
    session: AsyncSession, memory_cache: MemoryCache
) -> None:
    service = _service(session, memory_cache)
    category = await service.create_category(user_id=USER, name="Alltag")

    await service.add_favorite(
        user_id=USER,
        payload=_add("Haus", category_id=category.id, familiarity=4, headword_gloss="house"),
    )
    await service.add_favorite(
        user_id=USER, payload=_add(" haus ", category_id=category.id, is_hidden=True)
    )

    words = (await session.execute(select(UserWord))).scalars().all()
    assert len(words) == 1
    assert (words[0].familiarity, words[0].is_hidden, words[0].headword_gloss) == (
        4,
        True,
        "house",
    )


@pytest.mark.asyncio
async def test_add_into_foreign_or_archived_category_is_rejected(
    session: AsyncSession, memory_cache: MemoryCache
) -> None:
    service = _service(session, memory_cache)
    foreign = await service.create_category(user_id="someone-else", name="Fremd")
    archived = await service.create_category(user_id=USER, name="Alt")
    await service.archive_category(user_id=USER, category_id=archived.id)

    for category_id in (foreign.id, archived.id):
        with pytest.raises(LookupError):
            await service.add_favorite(user_id=USER, payload=_add("Haus", category_id=category_id))


@pytest.mark.asyncio
async def test_remove_is_word_level_and_category_scoped(
    session: AsyncSession, memory_cache: MemoryCache
) -> None:
    service = _service(session, memory_cache)
    home = await service.create_category(user_id=USER, name="Alltag")
    travel = await service.create_category(user_id=USER, name="Reisen")
    for sense_index in range(3):
        await service.add_favorite(
            user_id=USER, payload=_add("Haus", sense_index, category_id=home.id)
        )
    await service.add_favorite(user_id=USER, payload=_add("Haus", category_id=travel.id))

    removed = await service.remove_favorite(
        user_id=USER,
        payload=FavoriteRemoveRequest(headword="HAUS", canonical_pos="nomen", category_id=home.id),
    )

    assert removed == 3
    remaining = await service.list_library(user_id=USER)
    assert [(row.headword, row.category_id) for row in remaining.items] == [("Haus", travel.id)]


@pytest.mark.asyncio
async def test_listing_pages_newest_first(session: AsyncSession, memory_cache: MemoryCache) -> None:
    service = _service(session, memory_cache, page_size=2)
    category = await service.create_category(user_id=USER, name="Alltag")
    for headword in ("Eins", "Zwei", "Drei", "Vier", "Fünf"):
        await service.add_favorite(user_id=USER, payload=_add(headword, category_id=category.id))

    seen: list[str] = []
    cursor = None
    pages = 0
    while True:
        page = await service.list_library(user_id=USER, cursor=cursor, category_id=category.id)
        seen.extend(row.headword for row in page.items)
        pages += 1
        cursor = page.next_cursor
        if cursor is None:
            break

    assert seen == ["Fünf", "Vier", "Drei", "Zwei", "Eins"]
    assert pages == 3


@pytest.mark.asyncio
async def test_malformed_cursor_means_first_page(
    session: AsyncSession, memory_cache: MemoryCache
) -> None:
    service = _service(session, memory_cache)
    await service.add_favorite(user_id=USER, payload=_add("Haus"))

    page = await service.list_library(user_id=USER, cursor="%%%not-base64")

    assert [row.headword for row in page.items] == ["Haus"]


def test_clamp_limit() -> None:
    assert clamp_limit(None, default=50) == 50
    assert clamp_limit(0, default=50) == 50
    assert clamp_limit(500, default=50) == 200
    assert clamp_limit(10, default=50) == 10


@pytest.mark.asyncio
async def test_category_names_conflict_case_insensitively(
    session: AsyncSession, memory_cache: MemoryCache
) -> None:
    service = _service(session, memory_cache)
    await service.create_category(user_id=USER, name="vocab")
    travel = await service.create_category(user_id=USER, name="Reisen")

    with pytest.raises(CategoryConflictError):
        await service.create_category(user_id=USER, name=" Vocab")
    with pytest.raises(CategoryConflictError):
        await service.rename_category(user_id=USER, category_id=travel.id, name="VOCAB")

    renamed = await service.rename_category(user_id=USER, category_id=travel.id, name="REISEN")
    assert renamed.name == "REISEN"


@pytest.mark.asyncio
async def test_archived_names_can_be_reused(
    session: AsyncSession, memory_cache: MemoryCache
) -> None:
    service = _service(session, memory_cache)
    old = await service.create_category(user_id=USER, name="Alltag")
    await service.archive_category(user_id=USER, category_id=old.id)

    fresh = await service.create_category(user_id=USER, name="Alltag")

    assert fresh.id != old.id


@pytest.mark.asyncio
async def test_reorder_requires_every_active_id(
    session: AsyncSession, memory_cache: MemoryCache
) -> None:
    service = _service(session, memory_cache)
    ids = [
        (await service.create_category(user_id=USER, name=name)).id
        for name in ("A", "B", "C")
    ]

    with pytest.raises(ValueError):
        await service.reorder_categories(user_id=USER, ordered_ids=ids[:2])
    with pytest.raises(ValueError):
        await service.reorder_categories(user_id=USER, ordered_ids=[*ids, 999])

    result = await service.reorder_categories(user_id=USER, ordered_ids=list(reversed(ids)))

    assert [item.id for item in result.categories] == list(reversed(ids))
    assert [item.order_index for item in result.categories] == [0, 1, 2]


@pytest.mark.asyncio
async def test_archive_keeps_rows_and_closes_gap(
    session: AsyncSession, memory_cache: MemoryCache
) -> None:
    service = _service(session, memory_cache)
    first = await service.create_category(user_id=USER, name="A")
    middle = await service.create_category(user_id=USER, name="B")
    last = await service.create_category(user_id=USER, name="C")
    await service.add_favorite(user_id=USER, payload=_add("Haus", category_id=middle.id))

    await service.archive_category(user_id=USER, category_id=middle.id)

    categories = (await service.list_categories(user_id=USER)).categories
    assert [(item.id, item.order_index) for item in categories] == [(first.id, 0), (last.id, 1)]
    archived = await session.get(FavoriteCategory, middle.id)
    assert archived is not None and archived.is_archived
    assert len((await session.execute(select(UserWord))).scalars().all()) == 1

    with pytest.raises(LookupError):
        await service.archive_category(user_id=USER, category_id=middle.id)


@pytest.mark.asyncio
async def test_category_list_is_cached_and_invalidated(
    session: AsyncSession, memory_cache: MemoryCache
) -> None:
    service = _service(session, memory_cache)
    await service.create_category(user_id=USER, name="Alltag")

    await service.list_categories(user_id=USER)
    key = category_list_key(USER)
    assert key in memory_cache.store
    assert memory_cache.ttls[key] == 60

    await service.create_category(user_id=USER, name="Reisen")

    assert key not in memory_cache.store
    assert key in memory_cache.deleted
    names = [item.name for item in (await service.list_categories(user_id=USER)).categories]
    assert names == ["Alltag", "Reisen"]
