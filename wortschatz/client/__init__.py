"""Client-side favorites core: optimistic toggles over the library API."""

from wortschatz.client.cache import OptimisticListCache  # noqa: F401
from wortschatz.client.categories import CategoryController  # noqa: F401
from wortschatz.client.controller import LibraryController  # noqa: F401
from wortschatz.client.engine import FavoriteToggleEngine  # noqa: F401
from wortschatz.client.entries import DictionaryEntryRef, Sense, build_add_payloads  # noqa: F401
from wortschatz.client.errors import (  # noqa: F401
    CategoriesBusyError,
    ConflictError,
    LibraryError,
    LibraryValidationError,
    NotAuthenticatedError,
    NotFoundError,
    PartialFanoutError,
    TransportError,
)
from wortschatz.client.gateway import AuthSession, LibraryGateway  # noqa: F401
from wortschatz.client.keys import KEY_SEPARATOR, build_key  # noqa: F401
from wortschatz.client.locks import PendingOperation, PendingOperations  # noqa: F401
from wortschatz.client.selection import (  # noqa: F401
    CategorySelectionStore,
    MemorySelectionStore,
    RedisSelectionStore,
)
