from __future__ import annotations
from functools import wraps
import logging

from api.errors import AppError, AuthenticationError
from utils.security import decode_access_token
from models import storage

logger = logging.getLogger(__name__)


def bearer_token(request) -> str | None:
    """Token from 'Authorization: Bearer <token>', or None."""
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    token = auth.split(" ", 1)[1].strip()
    return token or None


def resolve_current_user(token: str | None):
    """
    User for an access token, or None.
    Never raises for a bad token: anonymous requests are allowed through and
    resolvers that need a user reject them with login_required.
    """
    if not token:
        return None
    try:
        decoded = decode_access_token(token)
    except AppError:
        return None
    user = storage.find_user_by_id(decoded["userId"])
    if user is None:
        logger.info("Access token for unknown user %s", decoded["userId"])
    return user


def login_required(resolver):
    """Resolver decorator: reject anonymous requests with UNAUTHENTICATED."""
    @wraps(resolver)
    def wrapper(obj, info, *args, **kwargs):
        if info.context.get("user") is None:
            raise AuthenticationError()
        return resolver(obj, info, *args, **kwargs)

    return wrapper
