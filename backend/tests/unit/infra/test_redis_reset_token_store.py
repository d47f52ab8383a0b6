"""Unit tests for RedisResetTokenStore using fakeredis."""

from __future__ import annotations

import pytest

from eduportal.infra.redis.redis_reset_token_store import RedisResetTokenStore
from eduportal.infra.redis.redis_session_store import RedisSessionStore


@pytest.fixture
def store(fake_redis):
    return RedisResetTokenStore(fake_redis, namespace="pwreset")


def test_issue_then_consume_once(store, fake_redis):
    store.issue(9, "reset-1", 1800)
    assert 0 < fake_redis.ttl("pwreset:reset-1") <= 1800
    assert store.consume("reset-1") == 9
    assert store.consume("reset-1") is None


def test_unknown_token(store):
    assert store.consume("nope") is None


def test_non_positive_ttl_rejected(store):
    with pytest.raises(ValueError):
        store.issue(1, "t", 0)


def test_reset_token_is_not_a_refresh_token(store, fake_redis):
    store.issue(9, "shared-value", 1800)
    sessions = RedisSessionStore(r=fake_redis, namespace="session")
    assert sessions.find("shared-value") is None
