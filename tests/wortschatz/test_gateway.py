"""Tests for the httpx gateway: request shape and status-code mapping."""

from __future__ import annotations

import json

import httpx
import pytest

from wortschatz.client.errors import (
    ConflictError,
    LibraryValidationError,
    NotAuthenticatedError,
    NotFoundError,
    TransportError,
)
from wortschatz.client.gateway import AuthSession, LibraryGateway
from wortschatz.schemas.library import FavoriteAddRequest, FavoriteRemoveRequest
from wortschatz.settings import AppSettings
from wortschatz.utils.request_context import reset_flow_id, set_flow_id

AUTH = AuthSession(user_id="user-1", access_token="secret-token")


def _gateway(handler, *, max_pages: int = 20) -> LibraryGateway:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="http://library.test"
    )
    return LibraryGateway(client, page_size=2, max_pages=max_pages)


def _row(headword: str, row_id: int) -> dict[str, object]:
    return {
        "id": row_id,
        "headword": headword,
        "canonical_pos": "Nomen",
        "sense_index": 0,
        "headword_gloss": "",
        "category_id": 1,
        "created_at": "2026-01-01T00:00:00+00:00",
    }


@pytest.mark.asyncio
async def test_add_sends_bearer_token_flow_id_and_snake_case_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    token = set_flow_id("flow-123")
    try:
        async with _gateway(handler) as gateway:
            await gateway.add(
                AUTH,
                FavoriteAddRequest(
                    headword="Haus", canonical_pos="Nomen", sense_index=1, headword_gloss="home"
                ),
            )
    finally:
        reset_flow_id(token)

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/library"
    assert request.headers["Authorization"] == "Bearer secret-token"
    assert request.headers["X-Flow-ID"] == "flow-123"
    body = json.loads(request.content)
    assert body == {
        "headword": "Haus",
        "canonical_pos": "Nomen",
        "sense_index": 1,
        "headword_gloss": "home",
    }


@pytest.mark.asyncio
async def test_remove_sends_delete_with_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True, "removed": 3})

    gateway = _gateway(handler)
    removed = await gateway.remove(
        AUTH, FavoriteRemoveRequest(headword="Haus", canonical_pos="Nomen", category_id=4)
    )
    await gateway.aclose()

    assert removed == 3
    assert seen[0].method == "DELETE"
    assert "X-Flow-ID" not in seen[0].headers
    assert json.loads(seen[0].content) == {
        "headword": "Haus",
        "canonical_pos": "Nomen",
        "category_id": 4,
    }


@pytest.mark.asyncio
async def test_list_all_follows_cursor_pages() -> None:
    pages = {
        None: {"items": [_row("A", 3), _row("B", 2)], "next_cursor": "c1", "limit": 2},
        "c1": {"items": [_row("C", 1)], "next_cursor": None, "limit": 2},
    }
    seen_params: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        seen_params.append(params)
        return httpx.Response(200, json=pages[params.get("cursor")])

    rows = await _gateway(handler).list_all(AUTH, category_id=1)

    assert [row.headword for row in rows] == ["A", "B", "C"]
    assert seen_params[0] == {"limit": "2", "category_id": "1"}
    assert seen_params[1]["cursor"] == "c1"


@pytest.mark.asyncio
async def test_list_all_stops_at_page_limit(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"items": [_row("A", 1)], "next_cursor": "again", "limit": 2}
        )

    rows = await _gateway(handler, max_pages=3).list_all(AUTH)

    assert len(rows) == 3
    assert "Stopped reloading favorites after 3 pages" in caplog.text


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "expected"),
    [
        (401, NotAuthenticatedError),
        (403, NotAuthenticatedError),
        (400, LibraryValidationError),
        (422, LibraryValidationError),
        (404, NotFoundError),
        (409, ConflictError),
        (500, TransportError),
        (503, TransportError),
    ],
)
async def test_status_codes_map_to_error_kinds(status_code: int, expected: type) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"message": "nope"})

    with pytest.raises(expected) as excinfo:
        await _gateway(handler).rename_category(AUTH, 7, "Reisen")

    assert "nope" in str(excinfo.value)


@pytest.mark.asyncio
async def test_network_failure_becomes_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError):
        await _gateway(handler).list_categories(AUTH)


@pytest.mark.asyncio
async def test_unexpected_payload_becomes_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "not-a-number"})

    with pytest.raises(TransportError):
        await _gateway(handler).create_category(AUTH, "Reisen")


@pytest.mark.asyncio
async def test_category_calls_hit_expected_routes() -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        if request.url.path.endswith("/reorder"):
            return httpx.Response(
                200,
                json={"categories": [{"id": 2, "name": "B", "order_index": 0}]},
            )
        if request.url.path.endswith("/archive"):
            return httpx.Response(200, json={"ok": True})
        return httpx.Response(200, json={"categories": []})

    gateway = _gateway(handler)
    assert await gateway.list_categories(AUTH) == []
    reordered = await gateway.reorder_categories(AUTH, [2])
    await gateway.archive_category(AUTH, 2)

    assert [item.id for item in reordered] == [2]
    assert seen == [
        ("GET", "/library/favorites/categories"),
        ("POST", "/library/favorites/categories/reorder"),
        ("POST", "/library/favorites/categories/2/archive"),
    ]


@pytest.mark.asyncio
async def test_from_settings_uses_client_configuration() -> None:
    settings = AppSettings(
        api_base_url="http://library.test/api",
        request_timeout_seconds=2.5,
        library_page_size=5,
        library_max_pages=3,
    )

    async with LibraryGateway.from_settings(settings) as gateway:
        assert gateway._client.base_url == httpx.URL("http://library.test/api/")
        assert gateway._client.timeout == httpx.Timeout(2.5)
        assert gateway._page_size == 5
        assert gateway._max_pages == 3
