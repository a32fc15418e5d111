"""Interactive OAuth2 authorization-code login with PKCE.

One call to :meth:`Authorizer.authorize` walks through::

    IDLE -> AWAITING_CODE -> EXCHANGING -> DONE
                 |               |
                 +---------------+--> FAILED

1. A fresh PKCE pair is generated and a :class:`CallbackListener` binds an
   ephemeral loopback port, so the redirect URI is known up front.
2. The authorization URL (carrying only the S256 challenge) is shown to the
   user and optionally opened in a browser.
3. The listener is polled cooperatively until the browser redirect
   delivers an outcome. There is no deadline unless a timeout is given.
4. The code is exchanged for tokens, revealing the verifier, and the
   employee profile is fetched with the new access token.

Nothing is retried and nothing is persisted here; the caller decides
whether to store the returned :class:`~floq.models.UserConfig`.
"""

from __future__ import annotations

import datetime as dt
import enum
import logging
import threading
import time
import webbrowser
from typing import Callable, Optional
from urllib.parse import urlencode

from floq.auth.callback import AuthorizationFailure, AuthorizationOutcome, CallbackListener
from floq.auth.pkce import generate_pkce_pair
from floq.auth.refresh import utcnow
from floq.auth.tokens import request_tokens
from floq.client import FloqClient
from floq.config import Settings
from floq.exceptions import CallbackError, FloqError, ProfileError, TokenExchangeError
from floq.models import Employee, OAuthTokens, UserConfig
from floq.output import debug, progress, prompt

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.25

ProfileFetcher = Callable[[str], Employee]


class AuthorizationState(enum.Enum):
    IDLE = "idle"
    AWAITING_CODE = "awaiting_code"
    EXCHANGING = "exchanging"
    DONE = "done"
    FAILED = "failed"


def fetch_employee(settings: Settings) -> ProfileFetcher:
    """Default profile fetcher: ``POST /rpc/who_am_i`` with the new access token."""

    def fetch(access_token: str) -> Employee:
        with FloqClient(settings, access_token) as client:
            return client.who_am_i()

    return fetch


class Authorizer:
    """Runs the browser login for one user.

    Args:
        settings: Client registration, endpoints and hosted domain.
        profile_fetcher: Maps an access token to the :class:`Employee` it
            belongs to. Defaults to the Floq ``who_am_i`` call.
        clock: Returns the current UTC time.
        poll_interval: Seconds to sleep between listener polls.
        timeout: Give up after this many seconds without a callback.
            ``None`` waits until interrupted.
        open_browser: Also try to open the URL in the default browser.
        listener_factory: Builds the callback listener; receives the
            expected hosted domain.
    """

    def __init__(
        self,
        settings: Settings,
        profile_fetcher: Optional[ProfileFetcher] = None,
        clock: Callable[[], dt.datetime] = utcnow,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: Optional[float] = None,
        open_browser: bool = False,
        listener_factory: Callable[[Optional[str]], CallbackListener] = CallbackListener,
    ) -> None:
        self._settings = settings
        self._profile_fetcher = profile_fetcher or fetch_employee(settings)
        self._clock = clock
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._open_browser = open_browser
        self._listener_factory = listener_factory
        self._state = AuthorizationState.IDLE

    @property
    def state(self) -> AuthorizationState:
        return self._state

    def _transition(self, state: AuthorizationState) -> None:
        debug(f"Login state: {self._state.value} -> {state.value}")
        self._state = state

    def build_authorization_url(self, redirect_uri: str, challenge: str) -> str:
        """Authorization URL for *redirect_uri* and a PKCE *challenge*.

        Raises:
            ConfigError: If no client id is configured.
        """
        client_id, _ = self._settings.require_client()
        params = {
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(self._settings.scopes),
            "code_challenge": challenge,
            "code_challenge_method": "S256",
        }
        separator = "&" if "?" in self._settings.authorization_url else "?"
        return f"{self._settings.authorization_url}{separator}{urlencode(params)}"

    def authorize(self) -> UserConfig:
        """Run the whole login and return the new credential record.

        Raises:
            ListenerError: If the loopback port cannot be bound.
            CallbackError: If the redirect carries an error, fails
                validation, or does not arrive within the timeout.
            TokenExchangeError: If the code cannot be exchanged.
            ProfileError: If the employee profile cannot be fetched.
            ConfigError: If the client id or secret is not configured.
        """
        try:
            # Fail on missing client settings before a port is bound.
            self._settings.require_client()
            pkce = generate_pkce_pair()
            with self._listener_factory(self._settings.hosted_domain) as listener:
                url = self.build_authorization_url(listener.redirect_uri, pkce.challenge)
                self._transition(AuthorizationState.AWAITING_CODE)
                prompt("Open this URL in your browser to log in to floq:")
                prompt(url)
                if self._open_browser:
                    self._launch_browser(url)
                progress("Waiting for the browser login to complete...")

                outcome = self._wait_for_outcome(listener)
                if isinstance(outcome, AuthorizationFailure):
                    raise CallbackError(
                        f"Login was not completed: {outcome.reason}. Please try logging in again."
                    )

                self._transition(AuthorizationState.EXCHANGING)
                tokens = self._exchange_code(outcome.code, listener.redirect_uri, pkce.verifier)

            employee = self._fetch_profile(tokens.access_token)
            config = UserConfig.from_login(employee, tokens)
        except BaseException:
            self._transition(AuthorizationState.FAILED)
            raise

        self._transition(AuthorizationState.DONE)
        return config

    def _wait_for_outcome(self, listener: CallbackListener) -> AuthorizationOutcome:
        deadline = None if self._timeout is None else time.monotonic() + self._timeout
        while True:
            outcome = listener.receive()
            if outcome is not None:
                return outcome
            if deadline is not None and time.monotonic() >= deadline:
                raise CallbackError(
                    f"No login callback arrived within {self._timeout:g} seconds. "
                    "Please try logging in again."
                )
            time.sleep(self._poll_interval)
            listener.poll()

    def _exchange_code(self, code: str, redirect_uri: str, verifier: str) -> OAuthTokens:
        issued_at = self._clock()
        response = request_tokens(
            self._settings,
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
                "code_verifier": verifier,
            },
            TokenExchangeError,
            "Exchanging the authorization code",
            "Please try logging in again.",
        )
        if not response.refresh_token:
            raise TokenExchangeError(
                "Exchanging the authorization code failed: the identity provider did not "
                "return a refresh token. Please try logging in again."
            )
        return OAuthTokens.from_response(response, refresh_token=response.refresh_token, issued_at=issued_at)

    def _fetch_profile(self, access_token: str) -> Employee:
        try:
            return self._profile_fetcher(access_token)
        except FloqError as exc:
            raise ProfileError(f"Could not fetch your employee profile: {exc}") from exc

    @staticmethod
    def _launch_browser(url: str) -> None:
        def open_browser() -> None:
            try:
                webbrowser.open(url)
            except webbrowser.Error:
                logger.debug("Could not open a browser", exc_info=True)

        threading.Thread(target=open_browser, daemon=True).start()
