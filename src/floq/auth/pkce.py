"""PKCE code verifier / challenge generation (:rfc:`7636`, S256 method)."""

from __future__ import annotations

import base64
import hashlib
import secrets

from floq.models import PKCEPair

# 96 random bytes encode to exactly 128 base64url characters without padding,
# the upper end of the 43-128 range allowed for a verifier.
_VERIFIER_ENTROPY_BYTES = 96


def code_challenge(verifier: str) -> str:
    """Return ``base64url_nopad(SHA256(verifier))``."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_pkce_pair() -> PKCEPair:
    """Generate a fresh PKCE pair from a cryptographically secure source.

    Returns:
        A :class:`~floq.models.PKCEPair` whose ``challenge`` is the S256
        transform of its ``verifier``.
    """
    verifier = secrets.token_urlsafe(_VERIFIER_ENTROPY_BYTES)
    return PKCEPair(verifier=verifier, challenge=code_challenge(verifier))
