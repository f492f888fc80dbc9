"""httpx client for the library API (the Remote Favorites Gateway)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from wortschatz.client.errors import (
    ConflictError,
    LibraryError,
    LibraryValidationError,
    NotAuthenticatedError,
    NotFoundError,
    TransportError,
)
from wortschatz.schemas.library import (
    Category,
    CategoryListResponse,
    FavoriteAddRequest,
    FavoriteRemoveRequest,
    FavoriteRow,
    LibraryPage,
    RemoveResponse,
)
from wortschatz.settings import AppSettings, get_settings
from wortschatz.utils.request_context import get_flow_id

logger = logging.getLogger(__name__)

__all__ = ["AuthSession", "LibraryGateway", "LibraryGatewayProtocol", "error_for_status"]


@dataclass(frozen=True, slots=True)
class AuthSession:
    """Credentials supplied by the external auth collaborator."""

    user_id: str
    access_token: str


class LibraryGatewayProtocol(Protocol):
    async def list_page(
        self,
        auth: AuthSession,
        *,
        category_id: int | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> LibraryPage: ...

    async def list_all(
        self, auth: AuthSession, *, category_id: int | None = None
    ) -> list[FavoriteRow]: ...

    async def add(self, auth: AuthSession, payload: FavoriteAddRequest) -> None: ...

    async def remove(self, auth: AuthSession, payload: FavoriteRemoveRequest) -> int: ...

    async def list_categories(self, auth: AuthSession) -> list[Category]: ...

    async def create_category(self, auth: AuthSession, name: str) -> Category: ...

    async def rename_category(self, auth: AuthSession, category_id: int, name: str) -> Category: ...

    async def reorder_categories(self, auth: AuthSession, ids: list[int]) -> list[Category]: ...

    async def archive_category(self, auth: AuthSession, category_id: int) -> None: ...


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for field in ("message", "detail"):
            value = body.get(field)
            if isinstance(value, str) and value:
                return value
    return response.reason_phrase


def error_for_status(response: httpx.Response, *, operation: str) -> LibraryError:
    """Translate a non-2xx response into the client error taxonomy."""

    status_code = response.status_code
    message = f"{operation}: {_error_message(response)}"
    if status_code in (401, 403):
        return NotAuthenticatedError(message)
    if status_code in (400, 422):
        return LibraryValidationError(message)
    if status_code == 404:
        return NotFoundError(message)
    if status_code == 409:
        return ConflictError(message)
    return TransportError(f"{message} (HTTP {status_code})", status_code=status_code)


class LibraryGateway:
    """Thin request/response wrapper around the ``/library`` endpoints."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        page_size: int = 50,
        max_pages: int = 20,
    ) -> None:
        self._client = client
        self._page_size = page_size
        self._max_pages = max_pages

    @classmethod
    def from_settings(cls, settings: AppSettings | None = None) -> LibraryGateway:
        settings = settings or get_settings()
        client = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.request_timeout_seconds,
        )
        return cls(
            client,
            page_size=settings.library_page_size,
            max_pages=settings.library_max_pages,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> LibraryGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        auth: AuthSession,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        operation = f"{method} {path}"
        headers = {"Authorization": f"Bearer {auth.access_token}"}
        flow_id = get_flow_id()
        if flow_id:
            headers["X-Flow-ID"] = flow_id

        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{operation} failed: {exc}") from exc

        if not response.is_success:
            error = error_for_status(response, operation=operation)
            logger.debug("%s -> %s (flow %s)", operation, response.status_code, flow_id or "-")
            raise error

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"{operation} returned a non-JSON body") from exc

    @staticmethod
    def _parse(model: type, payload: Any, *, operation: str) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise TransportError(f"{operation} returned an unexpected payload") from exc

    # -- favorites ----------------------------------------------------------

    async def list_page(
        self,
        auth: AuthSession,
        *,
        category_id: int | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> LibraryPage:
        params: dict[str, Any] = {"limit": limit or self._page_size}
        if cursor:
            params["cursor"] = cursor
        if category_id is not None:
            params["category_id"] = category_id
        payload = await self._request("GET", "/library", auth, params=params)
        return self._parse(LibraryPage, payload, operation="GET /library")

    async def list_all(
        self, auth: AuthSession, *, category_id: int | None = None
    ) -> list[FavoriteRow]:
        """Follow ``next_cursor`` until the last page or the page limit."""

        rows: list[FavoriteRow] = []
        cursor: str | None = None
        for _ in range(self._max_pages):
            page = await self.list_page(auth, category_id=category_id, cursor=cursor)
            rows.extend(page.items)
            cursor = page.next_cursor
            if not cursor:
                return rows
        logger.warning(
            "Stopped reloading favorites after %s pages for category %s",
            self._max_pages,
            category_id,
        )
        return rows

    async def add(self, auth: AuthSession, payload: FavoriteAddRequest) -> None:
        await self._request(
            "POST", "/library", auth, json=payload.model_dump(mode="json", exclude_none=True)
        )

    async def remove(self, auth: AuthSession, payload: FavoriteRemoveRequest) -> int:
        body = await self._request(
            "DELETE", "/library", auth, json=payload.model_dump(mode="json")
        )
        if body is None:
            return 0
        return self._parse(RemoveResponse, body, operation="DELETE /library").removed

    # -- categories ---------------------------------------------------------

    async def list_categories(self, auth: AuthSession) -> list[Category]:
        payload = await self._request("GET", "/library/favorites/categories", auth)
        parsed = self._parse(
            CategoryListResponse, payload, operation="GET /library/favorites/categories"
        )
        return parsed.categories

    async def create_category(self, auth: AuthSession, name: str) -> Category:
        payload = await self._request(
            "POST", "/library/favorites/categories", auth, json={"name": name}
        )
        return self._parse(Category, payload, operation="POST /library/favorites/categories")

    async def rename_category(self, auth: AuthSession, category_id: int, name: str) -> Category:
        path = f"/library/favorites/categories/{category_id}"
        payload = await self._request("PATCH", path, auth, json={"name": name})
        return self._parse(Category, payload, operation=f"PATCH {path}")

    async def reorder_categories(self, auth: AuthSession, ids: list[int]) -> list[Category]:
        path = "/library/favorites/categories/reorder"
        payload = await self._request("POST", path, auth, json={"ids": list(ids)})
        return self._parse(CategoryListResponse, payload, operation=f"POST {path}").categories

    async def archive_category(self, auth: AuthSession, category_id: int) -> None:
        await self._request(
            "POST", f"/library/favorites/categories/{category_id}/archive", auth
        )
