"""
Shared pytest fixtures for StudyHub client tests.
"""

import pytest

from studyhub_client.api_clients.credential_store import InMemoryStorage

BASE_URL = "https://studyhub.example.com"


@pytest.fixture(autouse=True)
def clean_studyhub_env(monkeypatch):
    """Keep STUDYHUB_* variables from the developer's shell out of tests."""
    for name in (
        "STUDYHUB_BASE_URL",
        "STUDYHUB_TIMEOUT",
        "STUDYHUB_UPLOAD_TIMEOUT",
        "STUDYHUB_TOKEN_FILE",
        "STUDYHUB_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def memory_storage() -> InMemoryStorage:
    return InMemoryStorage()
