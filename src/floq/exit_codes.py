"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to one error category and is referenced by the matching
:class:`~floq.exceptions.FloqError` subclass, so shell wrappers can tell an
expired login apart from an unreachable API without parsing stderr.

Example::

    $ floq hours history
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- please run `floq login` again
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including configuration problems)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""Logging in, refreshing the token, or fetching the profile failed."""

EXIT_NOT_FOUND = 4
"""The Floq API answered HTTP 404."""

EXIT_SERVER_ERROR = 5
"""The Floq API answered with an HTTP 5xx error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_INTERRUPTED = 130
"""The user pressed Ctrl-C."""
