"""Text normalization shared by favorite identity checks on both sides of the API."""

from __future__ import annotations

import unicodedata

__all__ = ["clean_text", "normalize_identity_text"]


def clean_text(value: object) -> str:
    """Return ``value`` as a trimmed string, treating ``None`` as empty."""

    if value is None:
        return ""
    return str(value).strip()


def normalize_identity_text(value: object) -> str:
    """Fold ``value`` into the form used for headword / part-of-speech identity.

    Text is NFC-composed (precomposed and combining umlauts compare equal),
    trimmed and lowercased. ``ß`` stays distinct from ``ss`` so that *Maße* and
    *Masse* remain two headwords, which rules out ``str.casefold``.
    """

    return unicodedata.normalize("NFC", clean_text(value)).lower()
