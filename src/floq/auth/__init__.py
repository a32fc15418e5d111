"""Login, token refresh and credential storage."""

from floq.auth.authorize import AuthorizationState, Authorizer
from floq.auth.callback import (
    AuthorizationCode,
    AuthorizationFailure,
    AuthorizationOutcome,
    CallbackListener,
)
from floq.auth.credential_store import CredentialStore
from floq.auth.pkce import generate_pkce_pair
from floq.auth.refresh import TokenRefresher
from floq.auth.session import SessionResolver, create_default_resolver

__all__ = [
    "AuthorizationCode",
    "AuthorizationFailure",
    "AuthorizationOutcome",
    "AuthorizationState",
    "Authorizer",
    "CallbackListener",
    "CredentialStore",
    "SessionResolver",
    "TokenRefresher",
    "create_default_resolver",
    "generate_pkce_pair",
]
