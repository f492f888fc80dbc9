"""Sequential create / rename / reorder / archive for favorites categories."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from wortschatz.client.errors import (
    CategoriesBusyError,
    ConflictError,
    LibraryError,
    LibraryValidationError,
    NotAuthenticatedError,
    NotFoundError,
)
from wortschatz.client.gateway import AuthSession, LibraryGatewayProtocol
from wortschatz.schemas.library import Category
from wortschatz.utils.text import clean_text, normalize_identity_text

logger = logging.getLogger(__name__)

__all__ = ["CategoryController"]

ResultT = TypeVar("ResultT")

_NAME_MAX_LENGTH = 64


class CategoryController:
    """Category mutations serialized by a single ``saving`` flag.

    There is no optimistic phase: every successful mutation is followed by a
    reload of the list, and a failed one leaves the previous list in place.
    """

    def __init__(
        self,
        gateway: LibraryGatewayProtocol,
        *,
        auth_provider: Callable[[], AuthSession | None],
    ) -> None:
        self._gateway = gateway
        self._auth_provider = auth_provider
        self._categories: tuple[Category, ...] = ()
        self._saving = False

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories

    @property
    def is_saving(self) -> bool:
        return self._saving

    def find(self, category_id: int) -> Category | None:
        return next((item for item in self._categories if item.id == category_id), None)

    async def load(self) -> tuple[Category, ...]:
        auth = self._auth_provider()
        if auth is None:
            self._categories = ()
            return self._categories
        categories = await self._gateway.list_categories(auth)
        self._categories = tuple(sorted(categories, key=lambda item: item.order_index))
        return self._categories

    async def create(self, name: str) -> Category | None:
        self._ensure_idle()
        cleaned = self._validate_name(name, exclude_id=None)
        return await self._mutate(
            f"create {cleaned!r}", lambda auth: self._gateway.create_category(auth, cleaned)
        )

    async def rename(self, category_id: int, name: str) -> Category | None:
        self._ensure_idle()
        self._require_known(category_id)
        cleaned = self._validate_name(name, exclude_id=category_id)
        return await self._mutate(
            f"rename {category_id}",
            lambda auth: self._gateway.rename_category(auth, category_id, cleaned),
        )

    async def reorder(self, ids: list[int]) -> list[Category] | None:
        """Persist a new order; ``ids`` must be a permutation of the active ids."""

        self._ensure_idle()
        ordered = list(ids)
        if len(set(ordered)) != len(ordered):
            raise LibraryValidationError("Reorder ids must not contain duplicates")
        known = {item.id for item in self._categories}
        unknown = [category_id for category_id in ordered if category_id not in known]
        if unknown:
            raise LibraryValidationError(f"Unknown category ids: {unknown}")
        missing = sorted(known.difference(ordered))
        if missing:
            raise LibraryValidationError(f"Reorder must list every category; missing {missing}")
        return await self._mutate(
            "reorder", lambda auth: self._gateway.reorder_categories(auth, ordered)
        )

    async def archive(self, category_id: int) -> bool:
        self._ensure_idle()
        self._require_known(category_id)

        async def _archive(auth: AuthSession) -> bool:
            await self._gateway.archive_category(auth, category_id)
            return True

        return bool(await self._mutate(f"archive {category_id}", _archive))

    # -- helpers ----------------------------------------------------------------

    def _ensure_idle(self) -> None:
        if self._saving:
            raise CategoriesBusyError("Categories are being saved")

    def _require_known(self, category_id: int) -> None:
        if self.find(category_id) is None:
            raise LibraryValidationError(f"Unknown category id: {category_id}")

    def _validate_name(self, name: str, *, exclude_id: int | None) -> str:
        cleaned = clean_text(name)
        if not cleaned:
            raise LibraryValidationError("Category name is required")
        if len(cleaned) > _NAME_MAX_LENGTH:
            raise LibraryValidationError(
                f"Category name must be at most {_NAME_MAX_LENGTH} characters"
            )
        name_key = normalize_identity_text(cleaned)
        for item in self._categories:
            if item.id != exclude_id and normalize_identity_text(item.name) == name_key:
                raise ConflictError(f"A category named {item.name!r} already exists")
        return cleaned

    async def _mutate(
        self,
        description: str,
        operation: Callable[[AuthSession], Awaitable[ResultT]],
    ) -> ResultT | None:
        auth = self._auth_provider()
        if auth is None:
            logger.debug("Ignoring category %s without a session", description)
            return None

        self._saving = True
        try:
            try:
                result = await operation(auth)
            except NotAuthenticatedError:
                logger.info("Category %s skipped: session rejected", description)
                return None
            except NotFoundError:
                logger.warning("Category %s failed: target no longer exists", description)
                await self._reload_quietly(auth)
                raise
            await self._reload_quietly(auth)
            return result
        finally:
            self._saving = False

    async def _reload_quietly(self, auth: AuthSession) -> None:
        try:
            categories = await self._gateway.list_categories(auth)
        except LibraryError as exc:
            logger.warning("Category reload failed; keeping the previous list: %s", exc)
            return
        self._categories = tuple(sorted(categories, key=lambda item: item.order_index))
