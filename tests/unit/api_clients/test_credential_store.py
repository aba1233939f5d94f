"""Unit tests for access token storage."""

import json
import os
import stat

from studyhub_client.api_clients.credential_store import (
    ACCESS_TOKEN_KEY,
    CredentialStore,
    FileStorage,
    InMemoryStorage,
    NullStorage,
)


class FailingStorage:
    """Storage whose every operation fails."""

    def get(self, key):
        raise OSError("storage unavailable")

    def set(self, key, value):
        raise OSError("storage unavailable")

    def remove(self, key):
        raise OSError("storage unavailable")


class TestCredentialStore:
    """Test in-memory token handling mirrored to storage."""

    def test_set_then_get_returns_token(self, memory_storage):
        store = CredentialStore(memory_storage)

        store.set("token-abc")

        assert store.get() == "token-abc"
        assert memory_storage.get(ACCESS_TOKEN_KEY) == "token-abc"

    def test_set_none_clears_token_and_storage(self, memory_storage):
        store = CredentialStore(memory_storage)
        store.set("token-abc")

        store.set(None)

        assert store.get() is None
        assert memory_storage.get(ACCESS_TOKEN_KEY) is None

    def test_empty_token_is_treated_as_absent(self, memory_storage):
        store = CredentialStore(memory_storage)
        store.set("token-abc")

        store.set("")

        assert store.get() is None
        assert memory_storage.get(ACCESS_TOKEN_KEY) is None

    def test_initial_token_loaded_from_storage(self):
        storage = InMemoryStorage({ACCESS_TOKEN_KEY: "persisted"})

        store = CredentialStore(storage)

        assert store.get() == "persisted"

    def test_custom_key(self):
        storage = InMemoryStorage({"other": "value"})

        store = CredentialStore(storage, key="other")
        store.set("replaced")

        assert storage.get("other") == "replaced"
        assert storage.get(ACCESS_TOKEN_KEY) is None

    def test_default_storage_keeps_nothing(self):
        store = CredentialStore()
        store.set("token-abc")

        assert store.get() == "token-abc"
        assert isinstance(store.storage, NullStorage)
        assert CredentialStore().get() is None

    def test_persist_failure_does_not_raise(self):
        store = CredentialStore(FailingStorage())

        store.set("token-abc")
        assert store.get() == "token-abc"

        store.set(None)
        assert store.get() is None

    def test_load_failure_means_absent(self):
        store = CredentialStore(FailingStorage())

        assert store.get() is None


class TestFileStorage:
    """Test JSON file persistence."""

    def test_token_survives_new_store_instance(self, tmp_path):
        path = tmp_path / "studyhub" / "credentials.json"

        CredentialStore(FileStorage(path)).set("token-abc")

        assert CredentialStore(FileStorage(path)).get() == "token-abc"

    def test_file_has_owner_only_permissions(self, tmp_path):
        path = tmp_path / "credentials.json"

        FileStorage(path).set(ACCESS_TOKEN_KEY, "token-abc")

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        with open(path) as f:
            assert json.load(f) == {ACCESS_TOKEN_KEY: "token-abc"}

    def test_remove_keeps_other_keys(self, tmp_path):
        path = tmp_path / "credentials.json"
        storage = FileStorage(path)
        storage.set("other", "keep-me")
        storage.set(ACCESS_TOKEN_KEY, "token-abc")

        storage.remove(ACCESS_TOKEN_KEY)

        with open(path) as f:
            assert json.load(f) == {"other": "keep-me"}

    def test_missing_file_reads_as_empty(self, tmp_path):
        storage = FileStorage(tmp_path / "nope.json")

        assert storage.get(ACCESS_TOKEN_KEY) is None
        storage.remove(ACCESS_TOKEN_KEY)
        assert not (tmp_path / "nope.json").exists()

    def test_unwritable_location_is_best_effort(self, tmp_path):
        blocker = tmp_path / "not-a-directory"
        blocker.write_text("plain file")
        store = CredentialStore(FileStorage(blocker / "credentials.json"))

        store.set("token-abc")

        assert store.get() == "token-abc"

    def test_corrupt_file_means_absent(self, tmp_path):
        path = tmp_path / "credentials.json"
        path.write_text("[1, 2, 3]")

        assert CredentialStore(FileStorage(path)).get() is None
