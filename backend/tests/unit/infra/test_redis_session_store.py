"""
Unit tests for RedisSessionStore using fakeredis.

They cover create/find, single-winner delete, bulk revocation through the
per-account index, listing with stale-member cleanup, and TTL renewal.
"""

from __future__ import annotations

import pytest

from eduportal.infra.redis.redis_session_store import RedisSessionStore
from eduportal.services._shared.ports import session_id_for

TTL = 3600


@pytest.fixture
def store(fake_redis):
    """Provide a RedisSessionStore backed by FakeRedis."""
    return RedisSessionStore(r=fake_redis, namespace="session")


def test_create_and_find(store, fake_redis):
    store.create(7, "rt-1", TTL)
    assert store.find("rt-1") == 7
    assert 0 < fake_redis.ttl("session:rt-1") <= TTL
    assert fake_redis.sismember("session:u:7", "rt-1")


def test_find_unknown_returns_none(store):
    assert store.find("missing") is None


def test_non_positive_ttl_rejected(store):
    with pytest.raises(ValueError):
        store.create(1, "rt", 0)


def test_delete_is_idempotent_and_single_winner(store, fake_redis):
    store.create(7, "rt-1", TTL)
    assert store.delete("rt-1") is True
    assert store.delete("rt-1") is False
    assert store.find("rt-1") is None
    assert not fake_redis.sismember("session:u:7", "rt-1")


def test_expired_session_is_gone(store, fake_redis):
    store.create(7, "rt-1", TTL)
    fake_redis.delete("session:rt-1")  # what expiry does
    assert store.find("rt-1") is None
    assert store.delete("rt-1") is False


def test_delete_all_for_account(store):
    store.create(1, "a", TTL)
    store.create(1, "b", TTL)
    store.create(2, "c", TTL)
    assert store.delete_all_for_account(1) == 2
    assert store.find("a") is None and store.find("b") is None
    assert store.find("c") == 2
    assert store.delete_all_for_account(1) == 0


def test_delete_all_skips_already_expired_members(store, fake_redis):
    store.create(1, "a", TTL)
    store.create(1, "b", TTL)
    fake_redis.delete("session:a")
    assert store.delete_all_for_account(1) == 1


def test_delete_all_keeps_sessions_created_during_revocation(store, monkeypatch):
    store.create(7, "a", TTL)
    read_members = RedisSessionStore._members
    logins = ["b"]

    def members_then_login(self, key_u):
        tokens = read_members(self, key_u)
        if logins:
            self.create(7, logins.pop(), TTL)
        return tokens

    monkeypatch.setattr(RedisSessionStore, "_members", members_then_login)
    assert store.delete_all_for_account(7) == 1

    assert store.find("a") is None
    assert store.find("b") == 7
    assert store.count_for_account(7) == 1
    assert store.delete_all_for_account(7) == 1
    assert store.find("b") is None


def test_list_and_count_prune_stale_members(store, fake_redis):
    store.create(3, "x", TTL)
    store.create(3, "y", TTL)
    fake_redis.delete("session:x")

    views = store.list_for_account(3)
    assert [v.session_id for v in views] == [session_id_for("y")]
    assert views[0].account_id == 3
    assert views[0].created_at is not None
    assert 0 < views[0].expires_in_seconds <= TTL
    assert store.count_for_account(3) == 1
    assert not fake_redis.sismember("session:u:3", "x")


def test_list_never_exposes_tokens(store):
    store.create(3, "secret-token", TTL)
    (view,) = store.list_for_account(3)
    assert "secret-token" not in repr(view)


def test_renew_resets_ttl(store, fake_redis):
    store.create(5, "rt", 60)
    assert store.renew("rt", TTL) is True
    assert fake_redis.ttl("session:rt") > 60
    assert store.renew("missing", TTL) is False


def test_namespaces_isolate_stores(fake_redis):
    sessions = RedisSessionStore(r=fake_redis, namespace="session")
    other = RedisSessionStore(r=fake_redis, namespace="other")
    sessions.create(1, "tok", TTL)
    assert other.find("tok") is None
