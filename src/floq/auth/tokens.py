"""Token endpoint plumbing shared by the code exchange and the refresh grant.

Both grants POST a form to the same endpoint and get the same JSON shape
back, so request shaping, error mapping and response validation live here.
Error messages name the step that failed and the HTTP status, plus the
OAuth ``error`` code when the provider sends one. Response bodies are never
echoed, since a successful body is made of tokens.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from floq.config import Settings
from floq.exceptions import AuthError
from floq.models import TokenResponse
from floq.output import debug


def _oauth_error_code(response: httpx.Response) -> str:
    """Extract the ``error`` field of an OAuth error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return ""


def request_tokens(
    settings: Settings,
    form: dict[str, str],
    error_cls: type[AuthError],
    step: str,
    hint: str = "",
) -> TokenResponse:
    """POST *form* to the token endpoint and validate the JSON answer.

    Client credentials from *settings* are added to the form.

    Args:
        settings: Supplies ``token_url``, client id/secret and timeout.
        form: Grant-specific fields (``grant_type`` and friends).
        error_cls: :class:`~floq.exceptions.AuthError` subclass to raise.
        step: Human-readable name of the step, used in error messages.
        hint: What the user can do about a failure, appended to every
            error message.

    Returns:
        The parsed :class:`~floq.models.TokenResponse`.

    Raises:
        AuthError: *error_cls* on any transport, status or body problem.
        ConfigError: If the client id or secret is not configured.
    """
    client_id, client_secret = settings.require_client()
    suffix = f" {hint}" if hint else ""
    data = {"client_id": client_id, "client_secret": client_secret, **form}

    debug(f"POST {settings.token_url} (grant_type={form.get('grant_type')})")
    try:
        response = httpx.post(
            settings.token_url,
            data=data,
            headers={"Accept": "application/json"},
            timeout=settings.request_timeout,
        )
        response.raise_for_status()
        payload: Any = response.json()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        code = _oauth_error_code(exc.response)
        detail = f" ({code})" if code else ""
        raise error_cls(
            f"{step} failed: the identity provider answered HTTP {status}{detail}.{suffix}"
        ) from exc
    except httpx.HTTPError as exc:
        raise error_cls(
            f"{step} failed: could not reach the identity provider ({exc.__class__.__name__}).{suffix}"
        ) from exc
    except ValueError as exc:
        raise error_cls(f"{step} failed: the identity provider sent a response that is not JSON.{suffix}") from exc

    try:
        token_response = TokenResponse.model_validate(payload)
    except ValidationError as exc:
        fields = ", ".join(sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]}))
        raise error_cls(
            f"{step} failed: the token response is malformed"
            + (f" (check {fields})." if fields else ".")
            + suffix
        ) from exc

    debug(f"{step} succeeded, access token valid for {token_response.expires_in}s")
    return token_response
