"""Exceptions raised by the client-side library core."""

from __future__ import annotations

from collections.abc import Sequence

__all__ = [
    "CategoriesBusyError",
    "ConflictError",
    "LibraryError",
    "LibraryValidationError",
    "NotAuthenticatedError",
    "NotFoundError",
    "PartialFanoutError",
    "TransportError",
]


class LibraryError(Exception):
    """Base class for every failure surfaced by the library client."""


class NotAuthenticatedError(LibraryError):
    """No valid session; callers treat this as a no-op rather than a failure."""


class LibraryValidationError(LibraryError, ValueError):
    """Input rejected locally (or by the server) before any state changed."""


class ConflictError(LibraryError):
    """A category name collides with another active category."""


class NotFoundError(LibraryError, LookupError):
    """The targeted category no longer exists remotely."""


class TransportError(LibraryError):
    """The remote store failed or could not be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PartialFanoutError(TransportError):
    """A multi-sense add failed after some sense rows were already written.

    The written rows are not compensated; the next successful reload shows
    them.
    """

    def __init__(
        self,
        message: str,
        *,
        written_sense_indexes: Sequence[int],
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.written_sense_indexes = tuple(written_sense_indexes)


class CategoriesBusyError(LibraryError):
    """A category mutation is already being saved."""
