"""
Tests for services.auth.Authenticator against a real (in-memory) database.
"""
import datetime as dt
import logging
from unittest.mock import AsyncMock, patch

import pytest
from tortoise.exceptions import IntegrityError

from notekeep.core.result import ErrorCode
from notekeep.core.security import verify_password
from notekeep.models.user import User
from notekeep.services import repository


pytestmark = pytest.mark.asyncio


async def test_register_then_login_returns_token_for_username(db, authenticator, codec):
    registered = await authenticator.register("alice", "alice@example.com", "S3cret-pass")
    assert registered.ok
    session = registered.value
    assert session.token_type == "Bearer"
    assert session.user.username == "alice"
    assert session.user.email == "alice@example.com"
    assert codec.parse_subject(session.access_token).value == "alice"

    logged_in = await authenticator.login("alice", "S3cret-pass")
    assert logged_in.ok
    assert logged_in.value.user.id == session.user.id
    assert codec.parse_subject(logged_in.value.access_token).value == "alice"


async def test_register_hashes_password_and_sets_role(db, authenticator):
    await authenticator.register("alice", "alice@example.com", "S3cret-pass")
    user = await User.get(username="alice")
    assert user.password_hash != "S3cret-pass"
    assert verify_password("S3cret-pass", user.password_hash)
    assert user.role == "user"


async def test_register_never_logs_raw_password(db, authenticator, caplog):
    with caplog.at_level(logging.DEBUG):
        await authenticator.register("alice", "alice@example.com", "Very-Distinct-Pass-99")
        await authenticator.login("alice", "Wrong-Distinct-Pass-77")
    assert "Very-Distinct-Pass-99" not in caplog.text
    assert "Wrong-Distinct-Pass-77" not in caplog.text


async def test_duplicate_username_is_rejected(db, authenticator):
    assert (await authenticator.register("alice", "alice@example.com", "pass-one")).ok
    second = await authenticator.register("alice", "other@example.com", "pass-two")
    assert not second.ok
    assert second.error.code == ErrorCode.USERNAME_EXISTS
    assert await User.filter(username="alice").count() == 1


async def test_duplicate_email_is_rejected(db, authenticator):
    assert (await authenticator.register("alice", "shared@example.com", "pass-one")).ok
    second = await authenticator.register("bob", "shared@example.com", "pass-two")
    assert second.error.code == ErrorCode.EMAIL_EXISTS
    assert not await repository.exists_by_username("bob")


async def test_unique_constraint_wins_a_lost_race(db, authenticator):
    """If the pre-check passes but the insert collides, the duplicate is still reported."""
    await User.create(username="alice", email="alice@example.com", password_hash="x")
    # Pre-check misses the existing row; the re-check after the failed insert sees it
    username_check = AsyncMock(side_effect=[False, True])
    email_check = AsyncMock(return_value=False)
    with patch("notekeep.services.auth.repository.exists_by_username", username_check), \
            patch("notekeep.services.auth.repository.exists_by_email", email_check):
        result = await authenticator.register("alice", "new@example.com", "pw-123456")
    assert result.error.code == ErrorCode.USERNAME_EXISTS
    assert await User.filter(username="alice").count() == 1


async def test_save_user_integrity_error_maps_to_email(db, authenticator):
    await User.create(username="carol", email="taken@example.com", password_hash="x")

    async def _collide(_user):
        raise IntegrityError("UNIQUE constraint failed: users.email")

    with patch("notekeep.services.auth.repository.save_user", side_effect=_collide):
        result = await authenticator.register("dave", "other@example.com", "pw-123456")
    assert result.error.code == ErrorCode.EMAIL_EXISTS


async def test_login_failures_are_indistinguishable(db, authenticator):
    await authenticator.register("alice", "alice@example.com", "right-pass")
    wrong_password = await authenticator.login("alice", "wrong-pass")
    unknown_user = await authenticator.login("nobody", "right-pass")
    assert wrong_password.error == unknown_user.error
    assert wrong_password.error.code == ErrorCode.AUTH_INVALID_CREDENTIALS


async def test_login_has_no_persistent_side_effects(db, authenticator):
    await authenticator.register("alice", "alice@example.com", "right-pass")
    before = await User.get(username="alice")
    await authenticator.login("alice", "right-pass")
    await authenticator.login("alice", "wrong-pass")
    after = await User.get(username="alice")
    assert await User.all().count() == 1
    assert after.password_hash == before.password_hash


async def test_token_lifetime_follows_ttl(db, authenticator, codec):
    session = (await authenticator.register("alice", "alice@example.com", "pw-123456")).value
    later = dt.datetime.now(dt.timezone.utc) + authenticator.token_ttl + dt.timedelta(seconds=1)
    assert codec.parse_subject(session.access_token, now=later).error.code == ErrorCode.TOKEN_EXPIRED


async def test_current_user_resolves_token(db, authenticator, codec):
    session = (await authenticator.register("alice", "alice@example.com", "pw-123456")).value
    resolved = await authenticator.current_user(session.access_token)
    assert resolved.ok
    assert resolved.value.username == "alice"

    bad = await authenticator.current_user(session.access_token + "x")
    assert bad.error.code == ErrorCode.AUTH_INVALID_TOKEN

    ghost = codec.issue("ghost", dt.datetime.now(dt.timezone.utc), dt.timedelta(minutes=5))
    assert (await authenticator.current_user(ghost)).error.code == ErrorCode.AUTH_INVALID_TOKEN


async def test_repository_user_lookups(db, create_user):
    user, _ = await create_user("erin")
    assert (await repository.find_user_by_email("erin@example.com")).id == user.id
    assert await repository.find_user_by_email("nobody@example.com") is None
    assert await repository.exists_by_email("erin@example.com")


async def test_login_with_corrupt_stored_hash_is_rejected(db, authenticator):
    await User.create(username="frank", email="frank@example.com", password_hash="not-a-real-hash")
    result = await authenticator.login("frank", "whatever-pass")
    assert result.error.code == ErrorCode.AUTH_INVALID_CREDENTIALS
