"""Login commands -- ``floq login``, ``floq logout`` and ``floq whoami``.

Typical workflow::

    floq login          # opens the browser once, then remembers you
    floq whoami         # who is stored, and until when the token is valid
    floq logout         # forget the stored login
"""

from __future__ import annotations

from typing import Optional

import typer

from floq.exceptions import AuthError, TokenRefreshError
from floq.output import debug, info, print_table, success, suggest, warning


def login_command(
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        min=1,
        help="Give up if the browser login has not completed after this many seconds.",
    ),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Only print the login URL, do not open a browser."
    ),
) -> None:
    """Log in to floq, or refresh the stored login.

    Runs the browser login only when nothing is stored yet. An expired
    access token is refreshed silently; when the refresh token itself is
    rejected, the stored login is discarded and the browser login runs
    again.
    """
    from floq.auth import create_default_resolver
    from floq.config import load_settings

    settings = load_settings()
    resolver = create_default_resolver(settings, timeout=timeout, open_browser=not no_browser)
    already_logged_in = resolver.current_config() is not None
    try:
        user = resolver.resolve()
    except TokenRefreshError as exc:
        debug(str(exc))
        warning("Your stored login could not be refreshed. Starting a new browser login.")
        resolver.logout()
        already_logged_in = False
        user = resolver.resolve()

    if already_logged_in:
        info(f"Already logged in as {user.name} ({user.email}).")
    else:
        success(f"Logged in as {user.name} ({user.email}).")
        suggest("See your hours: floq hours history")


def logout_command() -> None:
    """Forget the stored login."""
    from floq.auth import create_default_resolver
    from floq.config import load_settings

    if create_default_resolver(load_settings()).logout():
        success("Logged out.")
    else:
        info("Not logged in.")


def whoami_command() -> None:
    """Show the stored identity and when its access token expires.

    Reads the credential file only; nothing is sent over the network.
    """
    from floq.auth import CredentialStore

    config = CredentialStore().load()
    if config is None:
        raise AuthError("You are not logged in. Run `floq login` first.")

    expires = (
        config.access_token_expires.isoformat(timespec="seconds")
        if config.access_token_expires
        else "expired"
    )
    print_table(
        ["EMPLOYEE", "NAME", "EMAIL", "TOKEN EXPIRES"],
        [[str(config.employee_id), config.name, config.email, expires]],
    )
