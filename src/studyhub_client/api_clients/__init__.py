"""API Client Abstractions for the StudyHub backend.

Every verb returns an ``ApiResult``: callers branch on ``result.error``
instead of catching exceptions.
"""

from .auth_client import AuthSession
from .base_client import StudyHubAPIClient
from .credential_store import (
    CredentialStore,
    FileStorage,
    InMemoryStorage,
    KeyValueStorage,
    NullStorage,
)
from .factories import ClientFactory
from .models import (
    ApiError,
    ApiResult,
    AuthResponse,
    ErrorKind,
    RequestDescriptor,
    SearchFilters,
    SearchResult,
    User,
)
from .query_builder import build_search_params
from .refresh_coordinator import AuthRefreshCoordinator, RefreshState

__all__ = [
    # Clients
    "StudyHubAPIClient",
    "AuthSession",
    "ClientFactory",
    # Credential storage
    "CredentialStore",
    "KeyValueStorage",
    "InMemoryStorage",
    "NullStorage",
    "FileStorage",
    # Token refresh
    "AuthRefreshCoordinator",
    "RefreshState",
    # Data model
    "ApiError",
    "ApiResult",
    "ErrorKind",
    "RequestDescriptor",
    "SearchFilters",
    "SearchResult",
    "AuthResponse",
    "User",
    "build_search_params",
]
