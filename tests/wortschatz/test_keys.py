"""Tests for favorite identity keys and the shared text normalization."""

from __future__ import annotations

import unicodedata

from wortschatz.client.entries import DictionaryEntryRef
from wortschatz.client.keys import KEY_SEPARATOR, build_key
from wortschatz.schemas.library import FavoriteRow
from wortschatz.utils.text import normalize_identity_text


def test_build_key_ignores_case_and_whitespace() -> None:
    left = DictionaryEntryRef(headword="Schloss", canonical_pos="Nomen")
    right = DictionaryEntryRef(headword=" schloss ", canonical_pos="NOMEN")

    assert build_key(left) == build_key(right) == f"schloss{KEY_SEPARATOR}nomen"


def test_build_key_returns_strings_unchanged() -> None:
    key = build_key(DictionaryEntryRef(headword="Haus", canonical_pos="Nomen"))

    assert build_key(key) == key
    assert build_key("  Raw::Key ") == "  Raw::Key "


def test_build_key_accepts_listed_rows() -> None:
    row = FavoriteRow(headword="HAUS", canonical_pos="nomen", sense_index=2)

    assert build_key(row) == build_key(DictionaryEntryRef(headword="Haus", canonical_pos="Nomen"))


def test_build_key_with_missing_fields_yields_empty_components() -> None:
    assert build_key(DictionaryEntryRef()) == KEY_SEPARATOR


def test_normalization_composes_umlauts_and_keeps_eszett() -> None:
    decomposed = unicodedata.normalize("NFD", "Bär")

    assert normalize_identity_text(decomposed) == normalize_identity_text("BÄR") == "bär"
    assert normalize_identity_text("Maße") != normalize_identity_text("Masse")
