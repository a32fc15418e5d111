"""Local HTTP listener that receives the OAuth redirect from the browser.

:class:`CallbackListener` binds an ephemeral port on ``127.0.0.1`` as soon
as it is constructed, so the redirect URI embedding that port is known
before the authorization URL is ever shown. It never runs on its own
thread: the caller drives it with :meth:`CallbackListener.poll`, and reads
the result with :meth:`CallbackListener.receive`.

Every request to the redirect path is untrusted input. Its query string is
turned into exactly one :data:`AuthorizationOutcome` by
:func:`parse_callback_query`; the first outcome is kept in a single-slot
queue and later callbacks are answered but ignored.

See Also:
    :class:`floq.auth.authorize.Authorizer`, which owns one listener per
    login attempt.
"""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional, Union
from urllib.parse import parse_qsl, urlsplit

from floq.exceptions import ListenerError

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/"

SUCCESS_PAGE = (
    "Great, you are now logged in to floq!\n\n"
    "You can close this tab and return to the terminal."
)
FAILURE_PAGE = (
    "Something went wrong while logging in to floq.\n\n"
    "See the terminal for details."
)
ALREADY_HANDLED_PAGE = (
    "This login attempt has already been handled.\n\n"
    "You can close this tab."
)


@dataclass(frozen=True)
class AuthorizationCode:
    """The browser brought back an authorization code."""

    code: str


@dataclass(frozen=True)
class AuthorizationFailure:
    """The browser redirect was an error or could not be accepted."""

    reason: str


AuthorizationOutcome = Union[AuthorizationCode, AuthorizationFailure]


def parse_callback_query(
    query: str, expected_domain: Optional[str] = None
) -> AuthorizationOutcome:
    """Turn a raw callback query string into an outcome.

    Rules, checked in order:

    1. An ``error`` parameter from the provider is a failure.
    2. A missing or empty ``code`` is a failure.
    3. An ``hd`` (hosted domain) parameter that does not match
       *expected_domain* is a failure. No check when either is absent.

    Repeated keys keep their last value. Never raises.

    Args:
        query: The query string without the leading ``?``.
        expected_domain: The Google Workspace domain accounts must belong to.

    Returns:
        :class:`AuthorizationCode` or :class:`AuthorizationFailure`.
    """
    params = dict(parse_qsl(query, keep_blank_values=True))

    if "error" in params:
        return AuthorizationFailure(
            f"the identity provider returned an error: {params['error'] or 'unknown'}"
        )

    code = params.get("code")
    if not code:
        return AuthorizationFailure("missing parameter code")

    hosted_domain = params.get("hd")
    if (
        hosted_domain is not None
        and expected_domain
        and hosted_domain.lower() != expected_domain.lower()
    ):
        return AuthorizationFailure(
            f"hosted domain {hosted_domain} does not match {expected_domain}"
        )

    return AuthorizationCode(code)


class _CallbackServer(HTTPServer):
    """HTTPServer carrying the single-slot outcome channel."""

    # handle_request() in poll() must only check for a pending connection.
    timeout = 0

    def __init__(self, address: tuple[str, int], expected_domain: Optional[str]) -> None:
        super().__init__(address, _CallbackHandler)
        self.expected_domain = expected_domain
        self.outcomes: queue.Queue[AuthorizationOutcome] = queue.Queue(maxsize=1)
        self.delivered = False

    def deliver(self, outcome: AuthorizationOutcome) -> bool:
        """Hand over *outcome* unless one was already delivered."""
        if self.delivered:
            return False
        try:
            self.outcomes.put_nowait(outcome)
        except queue.Full:
            return False
        self.delivered = True
        return True

    def handle_error(self, request: Any, client_address: Any) -> None:
        logger.warning("Error while handling login callback from %s", client_address[0], exc_info=True)


class _CallbackHandler(BaseHTTPRequestHandler):
    server: _CallbackServer

    # A browser preconnect that never sends a request must not stall poll().
    timeout = 5

    def do_GET(self) -> None:
        parsed = urlsplit(self.path)
        if parsed.path != CALLBACK_PATH:
            self._respond(404, "Not found")
            return

        outcome = parse_callback_query(parsed.query, self.server.expected_domain)
        if not self.server.deliver(outcome):
            self._respond(200, ALREADY_HANDLED_PAGE)
            return

        if isinstance(outcome, AuthorizationCode):
            self._respond(200, SUCCESS_PAGE)
        else:
            logger.debug("Rejected login callback: %s", outcome.reason)
            self._respond(200, FAILURE_PAGE)

    def _respond(self, status: int, body: str) -> None:
        payload = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_request(self, code: Any = "-", size: Any = "-") -> None:
        # The query string carries the authorization code; log the path only.
        path = urlsplit(self.path).path if hasattr(self, "path") else "-"
        logger.debug("%s %s -> %s", getattr(self, "command", "-"), path, code)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("callback server: " + format, *args)


class CallbackListener:
    """Ephemeral loopback HTTP server for one login attempt.

    Args:
        expected_domain: Optional hosted domain every callback must match.
        host: Interface to bind. The redirect URI always uses this host.

    Raises:
        ListenerError: If the port cannot be bound.

    Example::

        with CallbackListener() as listener:
            print(listener.redirect_uri)    # http://127.0.0.1:53917/
            while (outcome := listener.receive()) is None:
                time.sleep(0.25)
                listener.poll()
    """

    def __init__(self, expected_domain: Optional[str] = None, host: str = "127.0.0.1") -> None:
        self._host = host
        try:
            self._server = _CallbackServer((host, 0), expected_domain)
        except OSError as exc:
            raise ListenerError(
                f"Could not start the local login server on {host}: {exc.strerror or exc}. "
                "Please try logging in again."
            ) from exc
        self._closed = False
        logger.debug("Login callback listener bound to port %d", self.port)

    @property
    def port(self) -> int:
        return self._server.server_address[1]

    @property
    def redirect_uri(self) -> str:
        return f"http://{self._host}:{self.port}{CALLBACK_PATH}"

    @property
    def closed(self) -> bool:
        return self._closed

    def poll(self) -> None:
        """Serve at most one pending connection without waiting for new ones."""
        if self._closed:
            return
        self._server.handle_request()

    def receive(self) -> Optional[AuthorizationOutcome]:
        """Return the delivered outcome, or ``None`` if none has arrived yet."""
        try:
            return self._server.outcomes.get_nowait()
        except queue.Empty:
            return None

    def close(self) -> None:
        if not self._closed:
            self._server.server_close()
            self._closed = True

    def __enter__(self) -> CallbackListener:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
