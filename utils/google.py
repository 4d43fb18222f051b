"""
Google ID token verification with PyJWT.

Keys come from Google's JWKS endpoint through jwt.PyJWKClient, which caches them.
"""
from __future__ import annotations

from typing import Any, Dict

import jwt

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

_jwk_client: jwt.PyJWKClient | None = None


def _get_jwk_client() -> jwt.PyJWKClient:
    global _jwk_client
    if _jwk_client is None:
        _jwk_client = jwt.PyJWKClient(GOOGLE_CERTS_URL, cache_keys=True)
    return _jwk_client


def verify_id_token(token: str, audience: str) -> Dict[str, Any]:
    """
    Verify a Google ID token for audience and return its profile claims:
    {"email", "name", "picture", "sub"}. Raises jwt.PyJWTError (or ValueError
    when no client id is configured) on any failure.
    """
    if not audience:
        raise ValueError("GOOGLE_CLIENT_ID is not configured")

    signing_key = _get_jwk_client().get_signing_key_from_jwt(token)
    claims = jwt.decode(
        token,
        signing_key.key,
        algorithms=["RS256"],
        audience=audience,
        options={"require": ["exp", "iat", "iss", "sub"]},
    )
    if claims.get("iss") not in GOOGLE_ISSUERS:
        raise jwt.InvalidIssuerError("Unexpected issuer")

    return {
        "email": claims.get("email"),
        "name": claims.get("name"),
        "picture": claims.get("picture"),
        "sub": claims.get("sub"),
    }
