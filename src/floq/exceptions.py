"""Exception hierarchy for floq.

All exceptions inherit from :class:`FloqError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`floq.exit_codes`.
:func:`floq.app.main` catches ``FloqError``, prints the message and exits
with that code.

The authentication errors are split per step of the login flow so that the
message shown to the user says *where* it went wrong::

    FloqError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- AuthError               (exit 3)
    |   +-- ListenerError       local callback server could not start
    |   +-- CallbackError       browser redirect was rejected
    |   +-- TokenExchangeError  authorization code exchange failed
    |   +-- TokenRefreshError   refresh token was rejected
    |   +-- ProfileError        employee profile could not be fetched
    +-- NotFoundError           (exit 4)
    +-- ServerError             (exit 5)
    +-- ConnectionError_        (exit 6)
    +-- ConfigError             (exit 1)

Messages must never contain token values, authorization codes or client
secrets.
"""

from floq.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class FloqError(Exception):
    """Base exception for all floq errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(FloqError):
    """Raised for invalid CLI arguments (bad dates, negative hours, ...)."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(FloqError):
    """Raised when logging in or keeping the session alive fails."""

    exit_code = EXIT_AUTH_FAILURE


class ListenerError(AuthError):
    """The local callback listener could not be started."""


class CallbackError(AuthError):
    """The browser redirect carried an error or failed validation."""


class TokenExchangeError(AuthError):
    """The authorization code could not be exchanged for tokens."""


class TokenRefreshError(AuthError):
    """The stored refresh token could not be exchanged for a new access token."""


class ProfileError(AuthError):
    """The employee profile could not be fetched with a fresh access token."""


class NotFoundError(FloqError):
    """Raised when the Floq API returns HTTP 404."""

    exit_code = EXIT_NOT_FOUND


class ServerError(FloqError):
    """Raised when the Floq API returns an HTTP 5xx error."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(FloqError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(FloqError):
    """Raised for missing settings and unreadable or unwritable credential files."""

    exit_code = EXIT_GENERIC_FAILURE
