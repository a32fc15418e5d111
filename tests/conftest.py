"""Shared test fixtures for floq.

Provides reusable fixtures for isolated config directories, settings,
credential records, output state, and running CLI commands. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import datetime as dt
import threading
from http.client import HTTPConnection
from pathlib import Path
from typing import Optional
from unittest.mock import MagicMock

import httpx
import pytest

from floq.auth.callback import CallbackListener
from floq.config import Settings
from floq.models import UserConfig
from floq.output import OutputFormat, OutputManager, reset_output, set_output


NOW = dt.datetime(2024, 3, 6, 12, 0, tzinfo=dt.timezone.utc)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``FLOQ_CONFIG_DIR`` at a temporary directory.

    Clears all FLOQ_* settings variables so that tests never pick up a
    developer's real client registration, and changes the working
    directory to tmp_path.

    Returns:
        The config directory (not created yet).
    """
    config_dir = tmp_path / "floq"
    monkeypatch.setenv("FLOQ_CONFIG_DIR", str(config_dir))

    for var in [
        "FLOQ_CLIENT_ID",
        "FLOQ_CLIENT_SECRET",
        "FLOQ_AUTHORIZATION_URL",
        "FLOQ_TOKEN_URL",
        "FLOQ_SCOPES",
        "FLOQ_HOSTED_DOMAIN",
        "FLOQ_API_URL",
        "FLOQ_TIMEOUT",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return config_dir


@pytest.fixture
def settings() -> Settings:
    return Settings(
        client_id="test-client.apps.example.com",
        client_secret="test-client-secret",
        authorization_url="https://idp.example.com/o/oauth2/auth",
        token_url="https://idp.example.com/token",
        api_url="https://api.floq.test",
    )


@pytest.fixture
def user_config() -> UserConfig:
    """A stored login whose access token is valid for another hour after NOW."""
    return UserConfig(
        employee_id=42,
        email="kari@blank.no",
        name="Kari Nordmann",
        access_token="stored-access-token",
        access_token_expires=NOW + dt.timedelta(hours=1),
        refresh_token="stored-refresh-token",
    )


# ---------------------------------------------------------------------------
# Token endpoint mocks
# ---------------------------------------------------------------------------


def _mock_token_response(
    token_response: dict[str, object] | None = None,
    status_code: int = 200,
) -> MagicMock:
    """Create a mock for the value returned by httpx.post."""
    if token_response is None:
        token_response = {"access_token": "new-access-token", "expires_in": 3600}

    mock_response = MagicMock(spec=httpx.Response)
    mock_response.status_code = status_code
    mock_response.json.return_value = token_response
    mock_response.text = str(token_response)

    if status_code >= 400:
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            message=f"HTTP {status_code}",
            request=MagicMock(),
            response=mock_response,
        )
    else:
        mock_response.raise_for_status.return_value = None

    return mock_response


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for tests that don't care about output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture
def token_response():
    """Factory fixture building mocks for the value returned by httpx.post.

    Example::

        mock_resp = token_response({"error": "invalid_grant"}, status_code=400)
    """
    return _mock_token_response


@pytest.fixture
def now() -> dt.datetime:
    """The fixed "current time" the ``user_config`` fixture is built around."""
    return NOW


# ---------------------------------------------------------------------------
# Browser simulation
# ---------------------------------------------------------------------------


def _visit(port: int, path: str) -> None:
    conn = HTTPConnection("127.0.0.1", port, timeout=5)
    try:
        conn.request("GET", path)
        conn.getresponse().read()
    finally:
        conn.close()


class _RedirectingListenerFactory:
    """Listener factory that plays the browser: one redirect per listener built."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.listeners: list[CallbackListener] = []

    def __call__(self, expected_domain: Optional[str]) -> CallbackListener:
        listener = CallbackListener(expected_domain)
        self.listeners.append(listener)
        threading.Thread(target=_visit, args=(listener.port, self.path), daemon=True).start()
        return listener


@pytest.fixture
def browser_redirect():
    """Factory fixture for listener factories that follow the login in a browser thread.

    Example::

        factory = browser_redirect("/?code=abc123")
        Authorizer(settings, listener_factory=factory)
    """
    return _RedirectingListenerFactory
