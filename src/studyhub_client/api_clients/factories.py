"""Factory for wiring API clients from configuration."""

from typing import Optional

import httpx

from ..config import ClientConfig
from .auth_client import AuthSession
from .base_client import StudyHubAPIClient
from .credential_store import CredentialStore, FileStorage, KeyValueStorage, NullStorage


class ClientFactory:
    """Builds clients and sessions with their dependencies injected."""

    @staticmethod
    def create_storage(config: ClientConfig) -> KeyValueStorage:
        """File storage when a token file is configured, otherwise none."""
        if config.token_file is None:
            return NullStorage()
        return FileStorage(config.token_file)

    @staticmethod
    def create_api_client(
        config: ClientConfig,
        storage: Optional[KeyValueStorage] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> StudyHubAPIClient:
        """Create a StudyHubAPIClient for ``config``.

        Args:
            config: Client configuration
            storage: Token storage override (defaults to ``create_storage``)
            transport: Optional httpx transport

        Returns:
            Configured StudyHubAPIClient instance
        """
        if storage is None:
            storage = ClientFactory.create_storage(config)

        return StudyHubAPIClient(
            base_url=config.base_url,
            credentials=CredentialStore(storage),
            request_timeout=config.request_timeout,
            upload_timeout=config.upload_timeout,
            transport=transport,
        )

    @staticmethod
    def create_auth_session(client: StudyHubAPIClient) -> AuthSession:
        return AuthSession(client)
