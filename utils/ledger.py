"""
Refresh-token ledger: the server side record of every live refresh token.

A token is valid only while it has a row AND its expiry is in the future.
Expired rows are removed when they are looked up; purge_expired() is an
optional sweep for storage hygiene.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from flask import current_app

from models import storage
from models.base_model import utcnow
from models.refresh_token import RefreshToken
from utils.security import issue_refresh_token

logger = logging.getLogger(__name__)


def _ttl(ttl_days: int | None) -> timedelta:
    if ttl_days is None:
        ttl_days = current_app.config["REFRESH_TOKEN_TTL_DAYS"]
    return timedelta(days=ttl_days)


def create(user_id: str, token: str, ttl_days: int | None = None) -> RefreshToken:
    """Store token for user_id, expiring ttl_days from now."""
    return storage.create_refresh_token(user_id, token, utcnow() + _ttl(ttl_days))


def find_valid(token: str) -> RefreshToken | None:
    if not token:
        return None
    record = storage.find_refresh_token(token)
    if record is None:
        return None
    if record.is_expired():
        storage.delete_refresh_token(token)
        logger.info("Expired refresh token removed for user %s", record.user_id)
        return None
    return record


def delete(token: str) -> None:
    """Remove one token; no error when it is already gone."""
    if token:
        storage.delete_refresh_token(token)


def delete_all_for_user(user_id: str) -> int:
    removed = storage.delete_all_refresh_tokens_for_user(user_id)
    if removed:
        logger.info("Revoked %d refresh token(s) for user %s", removed, user_id)
    return removed


def rotate(old_token: str, user_id: str, ttl_days: int | None = None) -> str | None:
    """
    Replace old_token with a fresh token in a single transaction.
    Returns the new token, or None if old_token was consumed by someone else first.
    """
    new_token = issue_refresh_token()
    record = storage.replace_refresh_token(old_token, user_id, new_token, utcnow() + _ttl(ttl_days))
    if record is None:
        logger.warning("Refresh token for user %s was already rotated", user_id)
        return None
    return new_token


def purge_expired() -> int:
    removed = storage.delete_expired_refresh_tokens()
    logger.info("Purged %d expired refresh token(s)", removed)
    return removed
