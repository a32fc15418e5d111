"""Persistent store for the logged-in user's identity and tokens.

The record lives in ``~/.floq/user-config.toml`` (or under
``$FLOQ_CONFIG_DIR``) as a flat TOML table holding the
:class:`~floq.models.UserConfig` fields verbatim, refresh token included.
Writes are atomic and the file is created with ``0o600`` permissions so the
refresh token is never readable by other users, even momentarily.

A missing file is the normal "not logged in" state: :meth:`CredentialStore.load`
returns ``None`` and :meth:`CredentialStore.delete` does nothing. Any other
I/O or parse problem raises :class:`~floq.exceptions.ConfigError` naming
the path.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Optional

import tomli_w
from pydantic import ValidationError

from floq.config import _atomic_write, get_config_dir
from floq.exceptions import ConfigError
from floq.models import UserConfig

USER_CONFIG_FILENAME = "user-config.toml"


class CredentialStore:
    """Read, write and delete the user's credential file.

    Args:
        path: File to use. Defaults to ``<config dir>/user-config.toml``.

    Example::

        store = CredentialStore()
        store.save(user_config)
        assert store.load() == user_config
        store.delete()
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path if path is not None else get_config_dir(create=False) / USER_CONFIG_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> Optional[UserConfig]:
        """Load the stored record.

        Returns:
            The :class:`~floq.models.UserConfig`, or ``None`` if the file
            does not exist.

        Raises:
            ConfigError: If the file cannot be read, is not valid TOML, or
                does not hold a valid record.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {self._path}: {exc.strerror or exc}") from exc

        try:
            data = tomllib.loads(text)
            return UserConfig.model_validate(data)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(
                f"Credential file {self._path} is not valid TOML ({exc}). "
                "Run `floq logout` and log in again."
            ) from exc
        except ValidationError as exc:
            fields = ", ".join(sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]}))
            raise ConfigError(
                f"Credential file {self._path} is incomplete or invalid ({fields}). "
                "Run `floq logout` and log in again."
            ) from exc

    def save(self, config: UserConfig) -> None:
        """Persist *config* atomically with ``0o600`` permissions.

        Raises:
            ConfigError: If the directory or file cannot be written.
        """
        data = config.model_dump(mode="python", exclude_none=True)
        try:
            _atomic_write(self._path, tomli_w.dumps(data), mode=0o600)
        except OSError as exc:
            raise ConfigError(f"Cannot write credential file {self._path}: {exc.strerror or exc}") from exc

    def delete(self) -> None:
        """Delete the credential file. A no-op when it does not exist.

        Raises:
            ConfigError: If the file exists but cannot be removed.
        """
        try:
            self._path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise ConfigError(f"Cannot delete credential file {self._path}: {exc.strerror or exc}") from exc
