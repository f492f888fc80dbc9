"""Facade bundling the toggle engine, category controller and selection."""

from __future__ import annotations

import logging

from wortschatz.client.cache import OptimisticListCache
from wortschatz.client.categories import CategoryController
from wortschatz.client.engine import FavoriteToggleEngine, ToggleAction
from wortschatz.client.entries import DictionaryEntryRef
from wortschatz.client.errors import LibraryValidationError
from wortschatz.client.gateway import AuthSession, LibraryGatewayProtocol
from wortschatz.client.selection import CategorySelectionStore
from wortschatz.schemas.library import Category, FavoriteRow
from wortschatz.settings import AppSettings, get_settings
from wortschatz.utils.text import normalize_identity_text

logger = logging.getLogger(__name__)

__all__ = ["LibraryController"]


class LibraryController:
    """Everything the UI layer may call on the favorites library."""

    def __init__(
        self,
        gateway: LibraryGatewayProtocol,
        selection: CategorySelectionStore,
        *,
        auth: AuthSession | None = None,
        settings: AppSettings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._auth = auth
        self._selection = selection
        self._default_category_name = settings.default_category_name
        self._cache = OptimisticListCache()
        self._engine = FavoriteToggleEngine(
            gateway,
            self._cache,
            selection,
            auth_provider=self._current_auth,
            default_gloss_lang=settings.default_gloss_lang,
        )
        self._categories = CategoryController(gateway, auth_provider=self._current_auth)

    def _current_auth(self) -> AuthSession | None:
        return self._auth

    # -- session --------------------------------------------------------------

    @property
    def auth(self) -> AuthSession | None:
        return self._auth

    def set_auth(self, auth: AuthSession | None) -> None:
        """Switch the signed-in user; signing out clears the visible list."""

        self._auth = auth
        if auth is None:
            self._cache.replace([], view_category_id=None)

    # -- read accessors ---------------------------------------------------------

    @property
    def favorites(self) -> tuple[FavoriteRow, ...]:
        return self._cache.rows

    @property
    def view_category_id(self) -> int | None:
        return self._cache.view_category_id

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories.categories

    @property
    def is_saving(self) -> bool:
        return self._categories.is_saving

    def is_favorited(self, entry: DictionaryEntryRef) -> bool:
        return self._engine.is_favorited(entry)

    def is_pending(self, entry_or_key: DictionaryEntryRef | str) -> bool:
        return self._engine.is_pending(entry_or_key)

    async def selected_category_id(self) -> int | None:
        if self._auth is None:
            return None
        return await self._selection.get_selected(self._auth.user_id)

    # -- favorites --------------------------------------------------------------

    async def toggle_favorite(
        self,
        entry: DictionaryEntryRef,
        *,
        category_id: int | None = None,
        action: ToggleAction | None = None,
    ) -> None:
        await self._engine.toggle_favorite(entry, category_id=category_id, action=action)

    async def update_sense_status(
        self,
        entry: DictionaryEntryRef,
        sense_index: int,
        *,
        familiarity: int | None = None,
        is_hidden: bool | None = None,
    ) -> None:
        await self._engine.update_sense_status(
            entry,
            sense_index,
            familiarity=familiarity,
            is_hidden=is_hidden,
            category_id=self._cache.view_category_id,
        )

    async def load_library(self) -> tuple[FavoriteRow, ...]:
        await self._engine.reload()
        return self._cache.rows

    # -- selection ----------------------------------------------------------------

    async def open_library(self) -> tuple[FavoriteRow, ...]:
        """Load categories, settle on a selection and load its favorites."""

        if self._auth is None:
            self._cache.replace([], view_category_id=None)
            return ()

        categories = await self._categories.load()
        remembered = await self._selection.get_selected(self._auth.user_id)
        selected = self._reconcile_selection(categories, remembered)
        if selected != remembered:
            logger.info(
                "Category selection for %s moved from %s to %s",
                self._auth.user_id,
                remembered,
                selected,
            )
            await self._selection.set_selected(self._auth.user_id, selected)

        await self._engine.switch_view(selected)
        return self._cache.rows

    async def select_category(self, category_id: int | None) -> tuple[FavoriteRow, ...]:
        """Remember ``category_id`` and show its favorites."""

        if self._auth is None:
            return ()
        self._require_known(category_id)
        await self._selection.set_selected(self._auth.user_id, category_id)
        await self._engine.switch_view(category_id)
        return self._cache.rows

    async def select_category_for_add(self, category_id: int | None) -> None:
        """Remember ``category_id`` as the target of later adds; the view stays."""

        if self._auth is None:
            return
        self._require_known(category_id)
        await self._selection.set_selected(self._auth.user_id, category_id)

    # -- categories ---------------------------------------------------------------

    async def load_categories(self) -> tuple[Category, ...]:
        return await self._categories.load()

    async def create_category(self, name: str) -> Category | None:
        return await self._categories.create(name)

    async def rename_category(self, category_id: int, name: str) -> Category | None:
        return await self._categories.rename(category_id, name)

    async def reorder_categories(self, ids: list[int]) -> list[Category] | None:
        return await self._categories.reorder(ids)

    async def archive_category(self, category_id: int) -> bool:
        archived = await self._categories.archive(category_id)
        if archived and self._auth is not None:
            selected = await self._selection.get_selected(self._auth.user_id)
            if selected == category_id:
                fallback = self._reconcile_selection(self._categories.categories, None)
                await self._selection.set_selected(self._auth.user_id, fallback)
                await self._engine.switch_view(fallback)
        return archived

    # -- helpers --------------------------------------------------------------

    def _require_known(self, category_id: int | None) -> None:
        if category_id is not None and self._categories.find(category_id) is None:
            raise LibraryValidationError(f"Unknown category id: {category_id}")

    def _reconcile_selection(
        self, categories: tuple[Category, ...], remembered: int | None
    ) -> int | None:
        if remembered is not None and any(item.id == remembered for item in categories):
            return remembered
        default_key = normalize_identity_text(self._default_category_name)
        for item in categories:
            if normalize_identity_text(item.name) == default_key:
                return item.id
        return categories[0].id if categories else None
