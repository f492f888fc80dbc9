"""Toggle transactions for favorite words.

One transaction runs: lock -> optimistic cache mutation -> remote fan-out ->
authoritative reload -> unlock. Any failure after the lock is taken puts the
word's rows back as the lock's snapshot had them before the error
propagates; rows of other words keep whatever their own transactions wrote.

Everything between deciding add-vs-remove and applying the optimistic
mutation runs without an ``await`` so no other task can interleave there.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from typing import Literal

from pydantic import ValidationError

from wortschatz.client.cache import OptimisticListCache
from wortschatz.client.entries import DictionaryEntryRef, build_add_payloads
from wortschatz.client.errors import (
    LibraryError,
    LibraryValidationError,
    NotAuthenticatedError,
    PartialFanoutError,
)
from wortschatz.client.gateway import AuthSession, LibraryGatewayProtocol
from wortschatz.client.keys import build_key
from wortschatz.client.locks import PendingOperations
from wortschatz.client.selection import CategorySelectionStore
from wortschatz.schemas.library import FavoriteAddRequest, FavoriteRemoveRequest, FavoriteRow
from wortschatz.utils.request_context import reset_flow_id, set_flow_id

logger = logging.getLogger(__name__)

__all__ = ["FavoriteToggleEngine", "ToggleAction"]

ToggleAction = Literal["add", "remove"]
Snapshot = tuple[FavoriteRow, ...]


class FavoriteToggleEngine:
    """Owns the optimistic cache and the per-word pending-operation lock."""

    def __init__(
        self,
        gateway: LibraryGatewayProtocol,
        cache: OptimisticListCache,
        selection: CategorySelectionStore,
        *,
        auth_provider: Callable[[], AuthSession | None],
        default_gloss_lang: str = "en",
    ) -> None:
        self._gateway = gateway
        self._cache = cache
        self._selection = selection
        self._auth_provider = auth_provider
        self._default_gloss_lang = default_gloss_lang
        self._pending: PendingOperations[Snapshot] = PendingOperations()

    @property
    def cache(self) -> OptimisticListCache:
        return self._cache

    # -- queries --------------------------------------------------------------

    def is_favorited(self, entry: DictionaryEntryRef) -> bool:
        if not entry.headword:
            return False
        return self._cache.contains(entry)

    def is_pending(self, entry_or_key: DictionaryEntryRef | str) -> bool:
        return self._pending.is_held(build_key(entry_or_key))

    # -- transactions ---------------------------------------------------------

    async def toggle_favorite(
        self,
        entry: DictionaryEntryRef,
        *,
        category_id: int | None = None,
        action: ToggleAction | None = None,
    ) -> None:
        """Add or remove ``entry`` from the favorites of a category.

        ``action`` forces the direction instead of deriving it from the cache.
        Calls without a session, with an empty headword, or for a word that
        already has a transaction in flight return without doing anything.

        Raises:
            LibraryValidationError: a remove has no resolvable category, or
                the entry cannot be turned into add payloads. Raised before
                the cache or the network is touched.
            LibraryError: the fan-out or the reload failed; the cache has
                been rolled back.
        """

        if action not in (None, "add", "remove"):
            raise LibraryValidationError(f"Unknown toggle action: {action!r}")

        auth = self._auth_provider()
        if auth is None:
            logger.debug("Ignoring favorite toggle without a session")
            return
        if not entry.headword:
            return

        key = build_key(entry)
        if self._pending.is_held(key):
            logger.debug("Dropping favorite toggle for %s; a transaction is in flight", key)
            return

        target_category = await self._resolve_category(auth, category_id)

        # No awaits from here until the fan-out starts.
        if self._pending.is_held(key):
            logger.debug("Dropping favorite toggle for %s; a transaction is in flight", key)
            return

        exists_before = self._cache.contains(key)
        removing = action == "remove" if action is not None else exists_before

        if removing and target_category is None:
            raise LibraryValidationError(
                "Cannot remove a favorite without a category; select a category first"
            )
        if removing:
            remove_payload = self._remove_payload(entry, target_category)
            add_payloads: list[FavoriteAddRequest] = []
        else:
            remove_payload = None
            add_payloads = self._add_payloads(entry, target_category)

        flow_id = uuid.uuid4().hex
        if not self._pending.try_acquire(key, flow_id=flow_id, snapshot=self._cache.snapshot()):
            logger.debug("Dropping favorite toggle for %s; a transaction is in flight", key)
            return
        flow_token = set_flow_id(flow_id)
        logger.debug(
            "flow %s: %s %s (category %s)",
            flow_id,
            "remove" if removing else "add",
            key,
            target_category,
        )

        try:
            if removing:
                self._cache.remove_identity(key)
            else:
                first = add_payloads[0]
                self._cache.insert_front(
                    OptimisticListCache.placeholder_row(
                        headword=entry.headword,
                        canonical_pos=entry.canonical_pos,
                        sense_index=first.sense_index,
                        headword_gloss=first.headword_gloss,
                        category_id=target_category,
                    )
                )

            if remove_payload is not None:
                await self._gateway.remove(auth, remove_payload)
            else:
                await self._fan_out_add(auth, add_payloads, flow_id=flow_id)

            await self._reload(auth)
        except NotAuthenticatedError:
            self._rollback(key, flow_id)
            logger.info("flow %s: session rejected; favorite toggle rolled back", flow_id)
        except (Exception, asyncio.CancelledError) as exc:
            self._rollback(key, flow_id)
            logger.warning(
                "flow %s: favorite toggle for %s rolled back: %s", flow_id, key, exc
            )
            raise
        else:
            logger.info("flow %s: favorite toggle for %s committed", flow_id, key)
        finally:
            self._pending.release(key, flow_id=flow_id)
            reset_flow_id(flow_token)

    async def update_sense_status(
        self,
        entry: DictionaryEntryRef,
        sense_index: int,
        *,
        familiarity: int | None = None,
        is_hidden: bool | None = None,
        category_id: int | None = None,
    ) -> None:
        """Upsert familiarity / visibility of one sense, then reload.

        No optimistic phase. The call is dropped while a toggle for the same
        word is in flight.
        """

        auth = self._auth_provider()
        if auth is None or not entry.headword:
            return
        key = build_key(entry)
        if self._pending.is_held(key):
            logger.debug("Dropping status update for %s; a transaction is in flight", key)
            return

        target_category = await self._resolve_category(auth, category_id)
        try:
            payload = FavoriteAddRequest(
                headword=entry.headword,
                canonical_pos=entry.canonical_pos,
                sense_index=sense_index,
                category_id=target_category,
                familiarity=familiarity,
                is_hidden=is_hidden,
            )
        except ValidationError as exc:
            raise LibraryValidationError(str(exc)) from exc

        flow_id = uuid.uuid4().hex
        if not self._pending.try_acquire(key, flow_id=flow_id, snapshot=self._cache.snapshot()):
            return
        flow_token = set_flow_id(flow_id)
        try:
            await self._gateway.add(auth, payload)
            await self._reload(auth)
        except NotAuthenticatedError:
            logger.info("flow %s: session rejected; status update skipped", flow_id)
            return
        finally:
            self._pending.release(key, flow_id=flow_id)
            reset_flow_id(flow_token)

        self._verify_status(key, sense_index, familiarity=familiarity, is_hidden=is_hidden)

    async def reload(self) -> None:
        """Replace the cache with the remote list for the current view."""

        auth = self._auth_provider()
        if auth is None:
            self._cache.replace([], view_category_id=self._cache.view_category_id)
            return
        await self._reload(auth)

    async def switch_view(self, category_id: int | None) -> None:
        """Point the cache at another category and reload it."""

        auth = self._auth_provider()
        if auth is None:
            self._cache.replace([], view_category_id=category_id)
            return
        rows = await self._gateway.list_all(auth, category_id=category_id)
        self._cache.replace(rows, view_category_id=category_id)

    # -- helpers --------------------------------------------------------------

    async def _resolve_category(self, auth: AuthSession, explicit: int | None) -> int | None:
        if explicit is not None:
            return explicit
        return await self._selection.get_selected(auth.user_id)

    def _add_payloads(
        self, entry: DictionaryEntryRef, category_id: int | None
    ) -> list[FavoriteAddRequest]:
        try:
            return build_add_payloads(
                entry, category_id=category_id, default_gloss_lang=self._default_gloss_lang
            )
        except ValidationError as exc:
            raise LibraryValidationError(str(exc)) from exc

    @staticmethod
    def _remove_payload(entry: DictionaryEntryRef, category_id: int) -> FavoriteRemoveRequest:
        try:
            return FavoriteRemoveRequest(
                headword=entry.headword,
                canonical_pos=entry.canonical_pos,
                category_id=category_id,
            )
        except ValidationError as exc:
            raise LibraryValidationError(str(exc)) from exc

    async def _fan_out_add(
        self, auth: AuthSession, payloads: list[FavoriteAddRequest], *, flow_id: str
    ) -> None:
        written: list[int] = []
        for payload in payloads:
            try:
                await self._gateway.add(auth, payload)
            except NotAuthenticatedError:
                raise
            except LibraryError as exc:
                if not written:
                    raise
                logger.warning(
                    "flow %s: add fan-out stopped at sense %s; senses %s were already written",
                    flow_id,
                    payload.sense_index,
                    written,
                )
                raise PartialFanoutError(
                    f"Saved {len(written)} of {len(payloads)} senses before failing: {exc}",
                    written_sense_indexes=written,
                    status_code=getattr(exc, "status_code", None),
                ) from exc
            written.append(payload.sense_index)

    def _rollback(self, key: str, flow_id: str) -> None:
        pending = self._pending.get(key)
        if pending is None or pending.flow_id != flow_id:
            return
        self._cache.restore_identity(key, pending.snapshot)

    async def _reload(self, auth: AuthSession) -> None:
        view = self._cache.view_category_id
        rows = await self._gateway.list_all(auth, category_id=view)
        self._cache.replace(rows, view_category_id=view)

    def _verify_status(
        self,
        key: str,
        sense_index: int,
        *,
        familiarity: int | None,
        is_hidden: bool | None,
    ) -> None:
        rows = [row for row in self._cache.rows_for(key) if row.sense_index == sense_index]
        if not rows:
            logger.warning("Status update for %s#%s not visible after reload", key, sense_index)
            return
        row = rows[0]
        if familiarity is not None and row.familiarity != familiarity:
            logger.warning(
                "Familiarity for %s#%s is %s after reload, expected %s",
                key,
                sense_index,
                row.familiarity,
                familiarity,
            )
        if is_hidden is not None and row.is_hidden != is_hidden:
            logger.warning(
                "Visibility for %s#%s is %s after reload, expected %s",
                key,
                sense_index,
                row.is_hidden,
                is_hidden,
            )
