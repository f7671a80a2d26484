"""
Unit tests for SessionStore class.
Tests: create, resolve, revoke, TTL handling
"""
import pytest

from roster.session_store import Principal, SessionStore


@pytest.fixture
def store(make_redis):
    return SessionStore(make_redis({}), ttl_seconds=600)


@pytest.fixture
def principal():
    return Principal(user_id=7, tenant_id=3, role='tenant_admin')


class TestPrincipal:

    def test_json_round_trip(self, principal):
        assert Principal.from_json(principal.to_json()) == principal

    def test_accepts_bytes(self, principal):
        assert Principal.from_json(principal.to_json().encode()) == principal


class TestCreate:

    def test_returns_unique_tokens(self, store, principal):
        tokens = {store.create(principal) for _ in range(20)}
        assert len(tokens) == 20

    def test_stored_with_ttl(self, store, principal):
        token = store.create(principal)

        store.redis.setex.assert_called_once()
        key, ttl, _ = store.redis.setex.call_args[0]
        assert key == f'session:{token}'
        assert ttl == 600


class TestResolve:

    def test_resolves_principal(self, store, principal):
        token = store.create(principal)
        assert store.resolve(token) == principal

    def test_unknown_token(self, store):
        assert store.resolve('not-a-token') is None

    @pytest.mark.parametrize('token', [None, ''])
    def test_empty_token(self, store, token):
        assert store.resolve(token) is None
        store.redis.get.assert_not_called()

    def test_slides_expiry(self, store, principal):
        token = store.create(principal)
        store.resolve(token)
        store.redis.expire.assert_called_with(f'session:{token}', 600)

    def test_malformed_entry_dropped(self, store):
        store.redis.setex('session:broken', 600, '{"user_id": 1}')

        assert store.resolve('broken') is None
        assert store.redis.get('session:broken') is None

    def test_expired_entry(self, store, principal):
        token = store.create(principal)
        # Simulate Redis evicting the key once the TTL runs out
        store.redis.delete(f'session:{token}')
        assert store.resolve(token) is None


class TestRevoke:

    def test_revoke(self, store, principal):
        token = store.create(principal)

        assert store.revoke(token) is True
        assert store.resolve(token) is None

    def test_revoke_unknown(self, store):
        assert store.revoke('nope') is False

    def test_revoke_empty(self, store):
        assert store.revoke(None) is False
