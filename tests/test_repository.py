"""Tests for the SQLite subscriber repository."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from relaybot.db import repository as repository_module
from relaybot.db.repository import SubscriberRepository, get_repository
from relaybot.errors import RegistryError


class TestSubscriberRepository:
    def test_starts_empty(self, repository):
        assert repository.list() == []
        assert repository.exists(42) is False

    def test_insert_and_exists(self, repository):
        repository.insert(42)
        assert repository.exists(42) is True
        assert repository.list() == [42]

    def test_insert_is_idempotent(self, repository):
        repository.insert(42)
        repository.insert(42)
        assert repository.list() == [42]

    def test_delete(self, repository):
        repository.insert(1)
        repository.insert(2)
        repository.delete(1)
        assert repository.list() == [2]

    def test_delete_missing_is_noop(self, repository):
        repository.delete(404)
        assert repository.list() == []

    def test_large_chat_ids(self, repository):
        # Group and channel ids are negative and exceed 32 bits
        repository.insert(-1001234567890)
        assert repository.exists(-1001234567890)

    def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "subs.db")
        SubscriberRepository(db_path=path).insert(7)
        assert SubscriberRepository(db_path=path).list() == [7]

    def test_unopenable_database_raises_registry_error(self, tmp_path):
        missing_dir = tmp_path / "missing" / "subs.db"
        with pytest.raises(RegistryError):
            SubscriberRepository(db_path=str(missing_dir))

    def test_query_errors_become_registry_errors(self, repository):
        with repository._get_connection() as conn:
            conn.execute("DROP TABLE subscribers")
            conn.commit()
        with pytest.raises(RegistryError, match="subscriber database error"):
            repository.list()

    def test_get_repository_singleton(self, tmp_path, monkeypatch):
        monkeypatch.setattr(repository_module.settings, "DB_PATH", str(tmp_path / "s.db"))
        with patch("relaybot.db.repository._repository", None):
            first = get_repository()
            assert get_repository() is first
            assert first.db_path == str(tmp_path / "s.db")
