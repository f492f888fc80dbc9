"""Identity keys for favorite words."""

from __future__ import annotations

from typing import Protocol

from wortschatz.utils.text import normalize_identity_text

KEY_SEPARATOR = "::"


class WordIdentity(Protocol):
    headword: str
    canonical_pos: str


def build_key(entry_or_key: WordIdentity | str) -> str:
    """Return the normalized ``headword::pos`` key for an entry.

    Strings are treated as already-built keys and returned unchanged, so the
    function is safe to apply twice. Missing fields yield empty components;
    callers reject an empty headword before reaching this point.
    """

    if isinstance(entry_or_key, str):
        return entry_or_key
    headword = normalize_identity_text(getattr(entry_or_key, "headword", ""))
    pos = normalize_identity_text(getattr(entry_or_key, "canonical_pos", ""))
    return f"{headword}{KEY_SEPARATOR}{pos}"
