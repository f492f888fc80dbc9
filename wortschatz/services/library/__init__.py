"""Library domain components split by responsibility.

Persistence (SQLAlchemy queries), caching (Redis-backed category lists) and
cursor encoding live in separate modules so :class:`LibraryService` only
coordinates them.
"""

from .cache import LibraryCache
from .cursor import LibraryCursor, decode_cursor, encode_cursor
from .persistence import LibraryPersistence

__all__ = [
    "LibraryCache",
    "LibraryCursor",
    "LibraryPersistence",
    "decode_cursor",
    "encode_cursor",
]
