"""Pydantic schemas for API requests and responses."""

from wortschatz.schemas.error import (  # noqa: F401
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from wortschatz.schemas.library import (  # noqa: F401
    Category,
    CategoryListResponse,
    CategoryNamePayload,
    CategoryReorderRequest,
    FavoriteAddRequest,
    FavoriteRemoveRequest,
    FavoriteRow,
    LibraryPage,
    OkResponse,
    RemoveResponse,
)
