"""Refresh-token ledger: lazy expiry, idempotent delete, bulk revoke, atomic rotation."""
from datetime import timedelta

import pytest

from models import storage
from models.base_model import as_utc, utcnow
from models.refresh_token import RefreshToken
from utils import ledger
from utils.security import issue_refresh_token


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def user(ctx):
    return storage.create_user(email="ledger@example.com", name="Ledger")


def test_create_uses_configured_ttl(user):
    token = issue_refresh_token()
    record = ledger.create(user.id, token)
    expected = utcnow() + timedelta(days=7)
    assert abs((as_utc(record.expires_at) - expected).total_seconds()) < 5
    assert ledger.find_valid(token).user_id == user.id


def test_find_valid_deletes_expired(user):
    token = issue_refresh_token()
    ledger.create(user.id, token, ttl_days=-1)
    assert storage.find_refresh_token(token) is not None

    assert ledger.find_valid(token) is None
    assert storage.find_refresh_token(token) is None


def test_find_valid_unknown_or_empty(user):
    assert ledger.find_valid("does-not-exist") is None
    assert ledger.find_valid("") is None


def test_delete_is_idempotent(user):
    token = issue_refresh_token()
    ledger.create(user.id, token)
    ledger.delete(token)
    ledger.delete(token)
    assert ledger.find_valid(token) is None


def test_delete_all_for_user_leaves_other_users(user):
    other = storage.create_user(email="other@example.com")
    for _ in range(3):
        ledger.create(user.id, issue_refresh_token())
    keep = issue_refresh_token()
    ledger.create(other.id, keep)

    assert ledger.delete_all_for_user(user.id) == 3
    assert storage.count(RefreshToken) == 1
    assert ledger.find_valid(keep) is not None


def test_rotate_replaces_token(user):
    old = issue_refresh_token()
    ledger.create(user.id, old)

    new = ledger.rotate(old, user.id)
    assert new and new != old
    assert ledger.find_valid(old) is None
    assert ledger.find_valid(new).user_id == user.id


def test_second_rotation_of_same_token_fails(user):
    old = issue_refresh_token()
    ledger.create(user.id, old)

    # both callers saw the token as valid before either rotated it
    assert ledger.find_valid(old) is not None
    first = ledger.rotate(old, user.id)
    second = ledger.rotate(old, user.id)

    assert first is not None
    assert second is None
    assert storage.count(RefreshToken) == 1


def test_purge_expired(user):
    ledger.create(user.id, issue_refresh_token(), ttl_days=-1)
    ledger.create(user.id, issue_refresh_token(), ttl_days=-2)
    live = issue_refresh_token()
    ledger.create(user.id, live)

    assert ledger.purge_expired() == 2
    assert ledger.find_valid(live) is not None


def test_purge_cli_command(app, user):
    ledger.create(user.id, issue_refresh_token(), ttl_days=-1)
    result = app.test_cli_runner().invoke(args=["purge-refresh-tokens"])
    assert "Removed 1 expired refresh token(s)" in result.output
