"""Silent access-token refresh with a stored refresh token."""

from __future__ import annotations

import datetime as dt
from typing import Callable

from floq.auth.tokens import request_tokens
from floq.config import Settings
from floq.exceptions import TokenRefreshError
from floq.models import OAuthTokens

REFRESH_HINT = "Run `floq login` to log in again."


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class TokenRefresher:
    """Exchange a refresh token for a new access token, without user interaction.

    There is no retry: a failed refresh is reported to the caller, which
    decides whether the user has to log in again.

    Args:
        settings: Token endpoint and client credentials.
        clock: Returns the current UTC time; injectable for tests.
    """

    def __init__(self, settings: Settings, clock: Callable[[], dt.datetime] = utcnow) -> None:
        self._settings = settings
        self._clock = clock

    def refresh(self, refresh_token: str) -> OAuthTokens:
        """Return fresh tokens carrying *refresh_token* unchanged.

        The provider does not rotate refresh tokens for this grant, so
        even if a response includes one it is ignored and the stored
        token stays authoritative.

        Raises:
            TokenRefreshError: On any HTTP, network or body problem.
            ConfigError: If the client id or secret is not configured.
        """
        issued_at = self._clock()
        response = request_tokens(
            self._settings,
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            TokenRefreshError,
            "Refreshing your login",
            REFRESH_HINT,
        )
        return OAuthTokens.from_response(response, refresh_token=refresh_token, issued_at=issued_at)
