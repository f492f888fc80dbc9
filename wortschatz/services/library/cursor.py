"""Opaque pagination cursors for the newest-first library listing."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class LibraryCursor:
    """Position after the last row of a page: ``(created_at, id)`` descending."""

    created_at: datetime
    id: int


def encode_cursor(created_at: datetime, row_id: int) -> str:
    payload = json.dumps({"created_at": created_at.isoformat(), "id": row_id})
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def decode_cursor(raw: str | None) -> LibraryCursor | None:
    """Decode ``raw`` into a cursor; anything malformed means "first page"."""

    if not raw:
        return None
    try:
        decoded = base64.urlsafe_b64decode(raw.encode("ascii")).decode("utf-8")
        payload = json.loads(decoded)
    except (binascii.Error, UnicodeError, ValueError):
        return None

    if not isinstance(payload, dict):
        return None
    created_at = payload.get("created_at")
    row_id = payload.get("id")
    if not isinstance(created_at, str) or isinstance(row_id, bool) or not isinstance(row_id, int):
        return None
    try:
        return LibraryCursor(created_at=datetime.fromisoformat(created_at), id=row_id)
    except ValueError:
        return None
