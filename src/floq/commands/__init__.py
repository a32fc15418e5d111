"""Built-in CLI commands for floq.

* :mod:`~floq.commands.auth` -- ``login``, ``logout`` and ``whoami``.
* :mod:`~floq.commands.projects` -- list projects.
* :mod:`~floq.commands.hours` -- ``hours track`` and ``hours history``.

Every command that talks to the Floq API first resolves a session with
:func:`resolve_user`, which logs in or refreshes only when needed.
"""

from __future__ import annotations

from typing import Optional

from floq.config import Settings, load_settings
from floq.models import User


def resolve_user(timeout: Optional[float] = None, open_browser: bool = True) -> tuple[User, Settings]:
    """Load settings and return the current :class:`User` with them."""
    from floq.auth import create_default_resolver

    settings = load_settings()
    resolver = create_default_resolver(settings, timeout=timeout, open_browser=open_browser)
    return resolver.resolve(), settings
