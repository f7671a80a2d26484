"""
Pytest configuration and fixtures for roster service tests.
"""
import os
import sys
import pytest
from unittest.mock import MagicMock

from flask import g

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from roster.app import create_app
from roster.models import db, Tenant, User
from roster.session_store import Principal


def build_redis_mock(store: dict) -> MagicMock:
    """Redis client double backed by a plain dict (TTL is recorded, not enforced)."""
    client = MagicMock()
    client.ttls = {}

    def setex(key, ttl, value):
        store[key] = value
        client.ttls[key] = ttl
        return True

    def expire(key, ttl):
        if key not in store:
            return False
        client.ttls[key] = ttl
        return True

    def delete(*keys):
        return sum(1 for k in keys if store.pop(k, None) is not None)

    client.setex.side_effect = setex
    client.get.side_effect = store.get
    client.expire.side_effect = expire
    client.delete.side_effect = delete
    client.ping.return_value = True
    return client


@pytest.fixture
def make_redis():
    """Factory for fresh dict-backed Redis doubles."""
    return build_redis_mock


@pytest.fixture(scope='session')
def redis_store():
    return {}


@pytest.fixture(scope='session')
def redis_client(redis_store):
    return build_redis_mock(redis_store)


@pytest.fixture(scope='session')
def app(redis_client):
    """Create application for testing."""
    app = create_app('testing', redis_client=redis_client)

    # The test client reuses the app context held open below, so `g` would
    # otherwise leak between requests (including Flask-Login's cached user).
    @app.teardown_request
    def _reset_request_globals(exc=None):
        g.pop('_login_user', None)
        g.pop('principal', None)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app, redis_store):
    """Create database session for testing."""
    with app.app_context():
        # Clear all tables before each test
        db.session.remove()

        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        redis_store.clear()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def sample_tenant(app, db_session):
    """An active group with WhatsApp configured."""
    with app.app_context():
        tenant = Tenant(
            name='Friday Volleyball',
            subdomain='friday',
            status='active',
            plan='monthly',
            whatsapp_number='+55 11 98643-9388'
        )
        tenant.whatsapp_api_token = 'wa-test-token'
        db.session.add(tenant)
        db.session.commit()

        db.session.refresh(tenant)
        return tenant


@pytest.fixture
def other_tenant(app, db_session):
    with app.app_context():
        tenant = Tenant(name='Sunday Beach', subdomain='sunday', status='trial')
        db.session.add(tenant)
        db.session.commit()

        db.session.refresh(tenant)
        return tenant


@pytest.fixture
def admin_user(app, db_session, sample_tenant):
    with app.app_context():
        user = User.create_user(sample_tenant, 'admin@friday.test', 's3cret-pass', 'Friday Admin')
        db.session.add(user)
        db.session.commit()

        db.session.refresh(user)
        return user


@pytest.fixture
def auth_headers(app, admin_user):
    """Bearer header for the sample group's admin."""
    token = app.session_store.create(
        Principal(user_id=admin_user.id, tenant_id=admin_user.tenant_id, role=admin_user.role)
    )
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def ledger(app, sample_tenant):
    from roster.admission_ledger import AdmissionLedger
    return AdmissionLedger(sample_tenant.id)


@pytest.fixture
def make_players():
    """Build plain player dicts for draw tests."""
    def _make(females: int, males: int, unset: int = 0):
        players = []
        for i in range(females):
            players.append({'name': f'F{i}', 'gender': 'female', 'category': 'monthly'})
        for i in range(males):
            players.append({'name': f'M{i}', 'gender': 'male', 'category': 'casual'})
        for i in range(unset):
            players.append({'name': f'U{i}', 'category': 'casual'})
        return players
    return _make
