"""Tests for the TOML credential store."""

from __future__ import annotations

import datetime as dt
import os
import stat
import tomllib
from pathlib import Path

import pytest

from floq.auth.credential_store import CredentialStore
from floq.exceptions import ConfigError
from floq.models import UserConfig


@pytest.fixture
def store(tmp_path: Path) -> CredentialStore:
    return CredentialStore(tmp_path / "floq" / "user-config.toml")


class TestDefaultPath:
    def test_uses_config_dir(self, isolated_config: Path) -> None:
        store = CredentialStore()
        assert store.path == isolated_config / "user-config.toml"

    def test_does_not_create_directory(self, isolated_config: Path) -> None:
        CredentialStore()
        assert not isolated_config.exists()


class TestLoad:
    def test_missing_file_is_none(self, store: CredentialStore) -> None:
        assert store.load() is None
        assert not store.exists()

    def test_invalid_toml(self, store: CredentialStore) -> None:
        store.path.parent.mkdir(parents=True)
        store.path.write_text("employee_id = = 3\n")
        with pytest.raises(ConfigError, match="not valid TOML") as exc_info:
            store.load()
        assert str(store.path) in str(exc_info.value)

    def test_missing_fields(self, store: CredentialStore) -> None:
        store.path.parent.mkdir(parents=True)
        store.path.write_text('email = "kari@blank.no"\n')
        with pytest.raises(ConfigError, match="incomplete or invalid") as exc_info:
            store.load()
        assert "refresh_token" in str(exc_info.value)

    def test_file_without_access_token(self, store: CredentialStore) -> None:
        store.path.parent.mkdir(parents=True)
        store.path.write_text(
            'employee_id = 42\nemail = "kari@blank.no"\nname = "Kari Nordmann"\n'
            'refresh_token = "R"\n'
        )
        config = store.load()
        assert config is not None
        assert config.access_token is None
        assert config.access_token_expires is None
        assert config.refresh_token == "R"


class TestSave:
    def test_round_trip(self, store: CredentialStore, user_config: UserConfig) -> None:
        store.save(user_config)
        assert store.load() == user_config

    def test_file_layout(self, store: CredentialStore, user_config: UserConfig) -> None:
        store.save(user_config)
        data = tomllib.loads(store.path.read_text())
        assert data["employee_id"] == 42
        assert data["refresh_token"] == "stored-refresh-token"
        assert isinstance(data["access_token_expires"], dt.datetime)

    def test_owner_only_permissions(self, store: CredentialStore, user_config: UserConfig) -> None:
        store.save(user_config)
        mode = stat.S_IMODE(os.stat(store.path).st_mode)
        assert mode == 0o600

    def test_overwrite_leaves_no_temp_files(self, store: CredentialStore, user_config: UserConfig) -> None:
        store.save(user_config)
        store.save(user_config.model_copy(update={"access_token": "other"}))
        assert [p.name for p in store.path.parent.iterdir()] == ["user-config.toml"]
        loaded = store.load()
        assert loaded is not None
        assert loaded.access_token == "other"

    def test_none_fields_are_omitted(self, store: CredentialStore, user_config: UserConfig) -> None:
        store.save(user_config.model_copy(update={"access_token": None, "access_token_expires": None}))
        text = store.path.read_text()
        assert "access_token " not in text
        assert "access_token_expires" not in text

    def test_unwritable_directory(self, tmp_path: Path, user_config: UserConfig) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = CredentialStore(blocker / "user-config.toml")
        with pytest.raises(ConfigError, match="Cannot write credential file"):
            store.save(user_config)


class TestDelete:
    def test_delete(self, store: CredentialStore, user_config: UserConfig) -> None:
        store.save(user_config)
        store.delete()
        assert not store.path.exists()
        assert store.load() is None

    def test_delete_missing_is_noop(self, store: CredentialStore) -> None:
        store.delete()
        store.delete()
        assert not store.exists()
