"""Turn whatever credentials are on disk into a usable :class:`~floq.models.User`."""

from __future__ import annotations

import datetime as dt
from typing import Callable, Optional

from floq.auth.authorize import Authorizer
from floq.auth.credential_store import CredentialStore
from floq.auth.refresh import TokenRefresher, utcnow
from floq.config import Settings
from floq.models import User, UserConfig
from floq.output import debug

REFRESH_MARGIN = dt.timedelta(minutes=1)


class SessionResolver:
    """Resolve the current session, logging in or refreshing only when needed.

    - No stored record: run the browser login and store the result.
    - Access token missing, expired or expiring within *margin*: refresh
      it silently and store the new token. A failed refresh is raised as
      :class:`~floq.exceptions.TokenRefreshError`; the user is never sent
      through the browser login behind their back.
    - Otherwise: hand out the stored token without any network call.

    "Expiring" means ``access_token_expires <= now + margin``: the margin
    is added to now, so a token is replaced a minute *before* it lapses,
    not a minute after.

    Args:
        store: Where the :class:`UserConfig` lives.
        authorizer: Runs the interactive login.
        refresher: Exchanges the refresh token.
        clock: Returns the current UTC time.
        margin: Refresh tokens this close to expiry.
    """

    def __init__(
        self,
        store: CredentialStore,
        authorizer: Authorizer,
        refresher: TokenRefresher,
        clock: Callable[[], dt.datetime] = utcnow,
        margin: dt.timedelta = REFRESH_MARGIN,
    ) -> None:
        self._store = store
        self._authorizer = authorizer
        self._refresher = refresher
        self._clock = clock
        self._margin = margin

    def resolve(self) -> User:
        config = self._store.load()

        if config is None:
            debug("No stored login, starting browser login")
            config = self._authorizer.authorize()
            self._store.save(config)
            return config.to_user()

        if config.needs_refresh(self._clock(), self._margin):
            debug("Access token expired or about to expire, refreshing")
            tokens = self._refresher.refresh(config.refresh_token)
            config = config.with_tokens(tokens)
            self._store.save(config)
            return config.to_user()

        debug("Using stored access token")
        return config.to_user()

    def current_config(self) -> Optional[UserConfig]:
        """The stored record, without touching the network."""
        return self._store.load()

    def logout(self) -> bool:
        """Forget the stored login. Returns whether there was one."""
        existed = self._store.exists()
        self._store.delete()
        return existed


def create_default_resolver(
    settings: Settings,
    timeout: Optional[float] = None,
    open_browser: bool = False,
) -> SessionResolver:
    """Wire a :class:`SessionResolver` with the standard store, login and refresh."""
    return SessionResolver(
        store=CredentialStore(),
        authorizer=Authorizer(settings, timeout=timeout, open_browser=open_browser),
        refresher=TokenRefresher(settings),
    )
