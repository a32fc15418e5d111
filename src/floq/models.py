"""Canonical Pydantic models shared across all floq modules.

The models fall into three groups:

**Token lifecycle** -- produced and consumed by :mod:`floq.auth`:
    :class:`PKCEPair`, :class:`TokenResponse`, :class:`OAuthTokens`.

**Identity** -- who is logged in:
    :class:`Employee` (fetched once per login), :class:`UserConfig` (the
    durable record in ``~/.floq/user-config.toml``) and :class:`User` (the
    read-only session handed to the API client, without the refresh token).

**Floq API payloads** -- consumed by the thin command layer:
    :class:`Customer`, :class:`Project`, :class:`ProjectTimestamp` and
    :class:`ProjectTimestamps`.

All timestamps are timezone-aware UTC datetimes.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# --- Token lifecycle ---


class PKCEPair(BaseModel):
    """A PKCE ``code_verifier`` and its S256 ``code_challenge`` (:rfc:`7636`).

    Only the challenge is sent to the authorization endpoint; the verifier
    is revealed to the token endpoint when the code is exchanged.
    """

    model_config = ConfigDict(frozen=True)

    verifier: str = Field(min_length=43, max_length=128)
    challenge: str


class TokenResponse(BaseModel):
    """JSON body returned by the provider's token endpoint.

    Unknown fields (``id_token``, ``scope``, ...) are ignored.
    """

    access_token: str = Field(min_length=1)
    refresh_token: Optional[str] = None
    expires_in: int = Field(gt=0, description="Lifetime of the access token in seconds")
    token_type: Optional[str] = None


class OAuthTokens(BaseModel):
    """Access and refresh token with the window in which the access token is valid."""

    access_token: str
    refresh_token: str
    issued_at: dt.datetime
    expires_at: dt.datetime

    @model_validator(mode="after")
    def _check_window(self) -> OAuthTokens:
        if self.expires_at <= self.issued_at:
            raise ValueError("expires_at must be later than issued_at")
        return self

    @classmethod
    def from_response(
        cls,
        response: TokenResponse,
        refresh_token: str,
        issued_at: dt.datetime,
    ) -> OAuthTokens:
        """Build tokens from a token-endpoint response received at *issued_at*."""
        return cls(
            access_token=response.access_token,
            refresh_token=refresh_token,
            issued_at=issued_at,
            expires_at=issued_at + dt.timedelta(seconds=response.expires_in),
        )


# --- Identity ---


class Employee(BaseModel):
    """The logged-in employee as known by the Floq API."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: str


class EmployeeResponse(BaseModel):
    """One row of ``POST /rpc/who_am_i``. The API returns more fields than these."""

    id: int
    email: str
    first_name: str
    last_name: str

    def to_employee(self) -> Employee:
        return Employee(
            id=self.id,
            email=self.email,
            name=f"{self.first_name} {self.last_name}",
        )


class User(BaseModel):
    """Runtime session handed to API collaborators.

    Derived from :class:`UserConfig` and never persisted. It deliberately
    has no refresh token field.
    """

    model_config = ConfigDict(frozen=True)

    employee_id: int
    email: str
    name: str
    access_token: str


class UserConfig(BaseModel):
    """Durable credential record stored as TOML by
    :class:`~floq.auth.credential_store.CredentialStore`.

    ``access_token`` and ``access_token_expires`` are optional because
    files written before silent refresh existed only held the refresh
    token; such a record is treated as expired.
    """

    employee_id: int
    email: str
    name: str
    access_token: Optional[str] = None
    access_token_expires: Optional[dt.datetime] = None
    refresh_token: str = Field(min_length=1)

    @classmethod
    def from_login(cls, employee: Employee, tokens: OAuthTokens) -> UserConfig:
        """Merge a freshly fetched employee profile with its tokens."""
        return cls(
            employee_id=employee.id,
            email=employee.email,
            name=employee.name,
            access_token=tokens.access_token,
            access_token_expires=tokens.expires_at,
            refresh_token=tokens.refresh_token,
        )

    def with_tokens(self, tokens: OAuthTokens) -> UserConfig:
        """Return a copy carrying the refreshed access token.

        The stored refresh token is kept as-is.
        """
        return self.model_copy(
            update={
                "access_token": tokens.access_token,
                "access_token_expires": tokens.expires_at,
            }
        )

    def needs_refresh(self, now: dt.datetime, margin: dt.timedelta) -> bool:
        """Whether the access token is missing, expired, or expires within *margin*."""
        if not self.access_token or self.access_token_expires is None:
            return True
        expires = self.access_token_expires
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=dt.timezone.utc)
        return expires <= now + margin

    def to_user(self) -> User:
        if not self.access_token:
            raise ValueError("UserConfig has no access token")
        return User(
            employee_id=self.employee_id,
            email=self.email,
            name=self.name,
            access_token=self.access_token,
        )


# --- Floq API payloads ---


class Customer(BaseModel):
    id: str
    name: str


class Project(BaseModel):
    id: str
    name: str
    active: bool = True
    customer: Customer


class ProjectTimestamp(BaseModel):
    """Minutes recorded on one project on one day."""

    project_id: str
    project_name: str
    customer_name: str
    date: dt.date
    minutes: int


class ProjectTimestamps(BaseModel):
    """All recorded days of one project within a period, keyed by date."""

    project_id: str
    project_name: str
    customer_name: str
    timestamps: dict[dt.date, int] = Field(default_factory=dict)

    def minutes_on(self, day: dt.date) -> Optional[int]:
        return self.timestamps.get(day)
