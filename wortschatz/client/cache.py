"""In-memory mirror of the favorites currently shown to the user."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from wortschatz.client.keys import WordIdentity, build_key
from wortschatz.schemas.library import FavoriteRow

__all__ = ["OptimisticListCache"]


class OptimisticListCache:
    """Ordered list of favorite rows for the active category view.

    Only the toggle engine (inside a transaction) and reloads write to it;
    everything else goes through the read accessors.
    """

    def __init__(self, rows: Iterable[FavoriteRow] = ()) -> None:
        self._rows: list[FavoriteRow] = list(rows)
        self.view_category_id: int | None = None

    # -- read accessors ---------------------------------------------------

    @property
    def rows(self) -> tuple[FavoriteRow, ...]:
        return tuple(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def contains(self, entry_or_key: WordIdentity | str) -> bool:
        key = build_key(entry_or_key)
        return any(build_key(row) == key for row in self._rows)

    def rows_for(self, entry_or_key: WordIdentity | str) -> list[FavoriteRow]:
        key = build_key(entry_or_key)
        return [row for row in self._rows if build_key(row) == key]

    def snapshot(self) -> tuple[FavoriteRow, ...]:
        """Return a deep copy usable as a rollback point."""

        return tuple(row.model_copy(deep=True) for row in self._rows)

    # -- transaction-scoped mutators ---------------------------------------

    def restore_identity(
        self, entry_or_key: WordIdentity | str, snapshot: Iterable[FavoriteRow]
    ) -> None:
        """Put one identity's rows back the way ``snapshot`` had them.

        Rows of other identities keep their current state. Snapshot rows of the
        identity return to their snapshot positions, clamped to the list length.
        """

        key = build_key(entry_or_key)
        self.remove_identity(key)
        for position, row in enumerate(snapshot):
            if build_key(row) == key:
                self._rows.insert(min(position, len(self._rows)), row.model_copy(deep=True))

    def replace(self, rows: Iterable[FavoriteRow], *, view_category_id: int | None) -> None:
        """Overwrite the whole view with an authoritative reload."""

        self._rows = list(rows)
        self.view_category_id = view_category_id

    def insert_front(self, row: FavoriteRow) -> bool:
        """Insert ``row`` at the front unless its identity is already present."""

        if self.contains(row):
            return False
        self._rows.insert(0, row)
        return True

    def remove_identity(self, entry_or_key: WordIdentity | str) -> int:
        """Drop every sense row of the identity; return how many went away."""

        key = build_key(entry_or_key)
        kept = [row for row in self._rows if build_key(row) != key]
        removed = len(self._rows) - len(kept)
        self._rows = kept
        return removed

    @staticmethod
    def placeholder_row(
        *,
        headword: str,
        canonical_pos: str,
        sense_index: int,
        headword_gloss: str,
        category_id: int | None,
    ) -> FavoriteRow:
        """Minimal row shown between the optimistic insert and the reload."""

        return FavoriteRow(
            headword=headword,
            canonical_pos=canonical_pos,
            sense_index=sense_index,
            headword_gloss=headword_gloss,
            category_id=category_id,
            created_at=datetime.now(UTC),
        )
