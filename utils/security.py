"""
Token helpers:
- Access tokens: short-lived JWTs (PyJWT, HS256) carrying the user id
- Refresh tokens: opaque random hex strings, stored server side by utils.ledger
"""
from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Dict, Any

import jwt

from flask import current_app

from api.errors import AuthenticationError

REFRESH_TOKEN_BYTES = 40

# One message for every verification failure so callers cannot tell
# an expired token from a forged one.
INVALID_TOKEN_MESSAGE = "Invalid or expired access token"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def issue_access_token(user_id: str, now: datetime | None = None) -> str:
    """Sign a short-lived access token for user_id."""
    issued = now or _now()
    exp = issued + current_app.config["ACCESS_TOKEN_EXPIRES"]
    payload = {
        "sub": str(user_id),
        "userId": str(user_id),
        "iat": int(issued.timestamp()),
        "exp": int(exp.timestamp()),
        "type": "access",
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=current_app.config["JWT_ALGORITHM"])


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate an access token.
    Raises AuthenticationError on a bad signature, expiry, wrong type or missing user id.
    """
    try:
        decoded = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["exp", "iat"]},
        )
    except jwt.InvalidTokenError:
        raise AuthenticationError(INVALID_TOKEN_MESSAGE)

    if decoded.get("type") != "access" or not isinstance(decoded.get("userId"), str):
        raise AuthenticationError(INVALID_TOKEN_MESSAGE)
    return decoded


def issue_refresh_token() -> str:
    """320 bits from the OS CSPRNG, hex encoded; carries no user data."""
    return secrets.token_hex(REFRESH_TOKEN_BYTES)
