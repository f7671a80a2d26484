"""
Unit tests for TenantRegistry class.
Tests: create_tenant, get_by_subdomain, ensure_default_tenant,
       change_status, require_serving
"""
import pytest
from datetime import date, timedelta

from roster.tenant_registry import TenantRegistry
from roster.errors import ValidationError, NotFoundError, TenantInactiveError
from roster.models import db, Tenant


class TestCreateTenant:
    """Tests for create_tenant method."""

    def test_create_defaults_to_trial(self, app, db_session):
        with app.app_context():
            registry = TenantRegistry()
            tenant = registry.create_tenant(name="Tuesday Crew", subdomain="tuesday")

            assert tenant.id is not None
            assert tenant.status == "trial"
            assert tenant.plan is None

    def test_subdomain_lowercased(self, app, db_session):
        with app.app_context():
            tenant = TenantRegistry().create_tenant(name="Beach", subdomain="  Beach-Club ")
            assert tenant.subdomain == "beach-club"

    @pytest.mark.parametrize('subdomain', ['', '-lead', 'trail-', 'has space', 'under_score'])
    def test_invalid_subdomain(self, app, db_session, subdomain):
        with app.app_context():
            with pytest.raises(ValidationError):
                TenantRegistry().create_tenant(name="Bad", subdomain=subdomain)

    def test_missing_name(self, app, db_session):
        with app.app_context():
            with pytest.raises(ValidationError):
                TenantRegistry().create_tenant(name="", subdomain="noname")

    def test_unknown_plan(self, app, db_session):
        with app.app_context():
            with pytest.raises(ValidationError):
                TenantRegistry().create_tenant(name="X", subdomain="x", plan="lifetime")

    def test_unknown_status(self, app, db_session):
        with app.app_context():
            with pytest.raises(ValidationError):
                TenantRegistry().create_tenant(name="X", subdomain="x", status="paused")

    def test_duplicate_subdomain(self, app, sample_tenant):
        with app.app_context():
            with pytest.raises(ValidationError):
                TenantRegistry().create_tenant(name="Copy", subdomain="friday")

    def test_whatsapp_token_encrypted(self, app, db_session):
        with app.app_context():
            tenant = TenantRegistry().create_tenant(
                name="Secure", subdomain="secure", whatsapp_api_token="plain-token"
            )
            stored = db.session.get(Tenant, tenant.id)

            assert stored.whatsapp_api_token_encrypted != "plain-token"
            assert stored.whatsapp_api_token == "plain-token"
            assert stored.to_dict()['has_whatsapp_token'] is True


class TestLookup:

    def test_get_by_subdomain(self, app, sample_tenant):
        with app.app_context():
            assert TenantRegistry().get_by_subdomain("FRIDAY").id == sample_tenant.id

    def test_get_missing(self, app, db_session):
        with app.app_context():
            assert TenantRegistry().get_by_subdomain("nowhere") is None

    def test_ensure_default_tenant_idempotent(self, app, db_session):
        with app.app_context():
            registry = TenantRegistry()
            first = registry.ensure_default_tenant()
            second = registry.ensure_default_tenant()

            assert first.id == second.id
            assert first.subdomain == "principal"
            assert first.status == "active"
            assert Tenant.query.count() == 1


class TestChangeStatus:

    def test_suspend_active(self, app, sample_tenant):
        with app.app_context():
            success, message = TenantRegistry().change_status("friday", "suspend")

            assert success is True
            assert "suspended" in message
            assert db.session.get(Tenant, sample_tenant.id).status == "suspended"

    def test_invalid_action_for_state(self, app, sample_tenant):
        with app.app_context():
            success, message = TenantRegistry().change_status("friday", "reactivate")

            assert success is False
            assert "Cannot reactivate" in message
            assert db.session.get(Tenant, sample_tenant.id).status == "active"

    def test_unknown_group(self, app, db_session):
        with app.app_context():
            success, message = TenantRegistry().change_status("nowhere", "activate")
            assert success is False
            assert message == "Group not found"

    def test_cancel_then_reactivate(self, app, sample_tenant):
        with app.app_context():
            registry = TenantRegistry()
            registry.change_status("friday", "cancel")
            success, _ = registry.change_status("friday", "reactivate")

            assert success is True
            assert db.session.get(Tenant, sample_tenant.id).status == "active"


class TestRequireServing:

    def test_active_group(self, app, sample_tenant):
        with app.app_context():
            assert TenantRegistry().require_serving("friday").id == sample_tenant.id

    def test_trial_group(self, app, other_tenant):
        with app.app_context():
            assert TenantRegistry().require_serving("sunday").id == other_tenant.id

    def test_unknown_group(self, app, db_session):
        with app.app_context():
            with pytest.raises(NotFoundError):
                TenantRegistry().require_serving("nowhere")

    @pytest.mark.parametrize('status', ['suspended', 'canceled', 'garbage'])
    def test_not_serving(self, app, sample_tenant, status):
        with app.app_context():
            tenant = db.session.get(Tenant, sample_tenant.id)
            tenant.status = status
            db.session.commit()

            with pytest.raises(TenantInactiveError):
                TenantRegistry().require_serving("friday")

    def test_past_due_date(self, app, sample_tenant):
        with app.app_context():
            tenant = db.session.get(Tenant, sample_tenant.id)
            tenant.due_date = date(2026, 3, 1)
            db.session.commit()

            with pytest.raises(TenantInactiveError):
                TenantRegistry().require_serving("friday", today=date(2026, 3, 2))

    def test_due_today_still_serves(self, app, sample_tenant):
        with app.app_context():
            tenant = db.session.get(Tenant, sample_tenant.id)
            tenant.due_date = date.today()
            db.session.commit()

            assert TenantRegistry().require_serving("friday") is not None

    def test_future_due_date(self, app, sample_tenant):
        with app.app_context():
            tenant = db.session.get(Tenant, sample_tenant.id)
            tenant.due_date = date.today() + timedelta(days=30)
            db.session.commit()

            assert TenantRegistry().require_serving("friday") is not None
