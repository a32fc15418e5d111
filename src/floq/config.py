"""Settings, directory layout and atomic writes.

This module handles everything floq needs before it can talk to anybody:

* **Directory layout** -- all local state lives in ``~/.floq/`` (or in
  ``$FLOQ_CONFIG_DIR`` when set). See :func:`get_config_dir`.
* **Settings** -- OAuth client credentials and endpoint URLs are injected
  through ``FLOQ_*`` environment variables and collected into a
  :class:`Settings` model by :func:`load_settings`. Nothing secret is
  compiled into the package.
* **Atomic writes** -- :func:`_atomic_write` writes through a temp file and
  ``os.replace`` so a crash never leaves a half-written credential file.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from floq.exceptions import ConfigError

_APP_DIR_NAME = ".floq"

DEFAULT_AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
DEFAULT_TOKEN_URL = "https://oauth2.googleapis.com/token"
DEFAULT_SCOPES = ("openid", "email", "profile")
DEFAULT_API_URL = "https://api-blank.floq.no"


# --- Directory layout ---


def get_config_dir(create: bool = True) -> Path:
    """Return the floq state directory.

    ``$FLOQ_CONFIG_DIR`` wins when set; otherwise ``~/.floq/``.

    Args:
        create: Create the directory when it does not exist yet. The
            credential store passes ``False`` and lets its first write
            create it.

    Returns:
        Absolute path to the directory.

    Raises:
        RuntimeError: If the home directory cannot be determined. There is
            no sane fallback for where credentials should live.
    """
    env_value = os.environ.get("FLOQ_CONFIG_DIR", "")
    path = Path(env_value) if env_value else Path.home() / _APP_DIR_NAME
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def _atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file lives next to *path* so ``os.replace`` is an atomic
    rename. When *mode* is given it is applied to the temp file before any
    content is written, so secrets are never readable by others, even
    momentarily.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Settings ---


class Settings(BaseModel):
    """OAuth client registration and service endpoints.

    Example::

        Settings(
            client_id="1234.apps.googleusercontent.com",
            client_secret="s3cret",
            hosted_domain="blank.no",
        )
    """

    client_id: Optional[str] = Field(default=None, description="OAuth client id")
    client_secret: Optional[str] = Field(default=None, description="OAuth client secret")
    authorization_url: str = DEFAULT_AUTHORIZATION_URL
    token_url: str = DEFAULT_TOKEN_URL
    scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))
    hosted_domain: Optional[str] = Field(
        default=None,
        description="Expected value of the 'hd' callback parameter; no check when unset",
    )
    api_url: str = DEFAULT_API_URL
    request_timeout: float = Field(default=30.0, gt=0)

    def require_client(self) -> tuple[str, str]:
        """Return ``(client_id, client_secret)`` or explain which one is missing.

        Raises:
            ConfigError: If either value is unset.
        """
        if not self.client_id:
            raise ConfigError(
                "No OAuth client id configured. Set the FLOQ_CLIENT_ID environment variable."
            )
        if not self.client_secret:
            raise ConfigError(
                "No OAuth client secret configured. "
                "Set the FLOQ_CLIENT_SECRET environment variable."
            )
        return self.client_id, self.client_secret


_ENV_FIELDS = {
    "FLOQ_CLIENT_ID": "client_id",
    "FLOQ_CLIENT_SECRET": "client_secret",
    "FLOQ_AUTHORIZATION_URL": "authorization_url",
    "FLOQ_TOKEN_URL": "token_url",
    "FLOQ_HOSTED_DOMAIN": "hosted_domain",
    "FLOQ_API_URL": "api_url",
    "FLOQ_TIMEOUT": "request_timeout",
}


def load_settings(**overrides: object) -> Settings:
    """Resolve settings from ``FLOQ_*`` environment variables.

    Precedence (high to low):
        1. Keyword *overrides* (non-``None`` values only)
        2. Environment variables (``FLOQ_CLIENT_ID``, ``FLOQ_SCOPES``, ...)
        3. Defaults

    Returns:
        The validated :class:`Settings`.

    Raises:
        ConfigError: If a value fails validation (e.g. a non-numeric
            ``FLOQ_TIMEOUT``).
    """
    values: dict[str, object] = {}
    for env_var, field in _ENV_FIELDS.items():
        env_value = os.environ.get(env_var)
        if env_value:
            values[field] = env_value.rstrip("/") if field.endswith("_url") else env_value

    scopes = os.environ.get("FLOQ_SCOPES")
    if scopes:
        values["scopes"] = scopes.split()

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Settings.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid floq settings: {exc}") from exc
