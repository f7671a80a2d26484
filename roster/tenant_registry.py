import logging
import re
from datetime import date
from typing import Optional, Tuple

from .errors import NotFoundError, TenantInactiveError, ValidationError
from .models import db, Tenant
from shared.state_machine import TenantStatusMachine, TenantStatus, TransitionError

logger = logging.getLogger(__name__)

SUBDOMAIN_PATTERN = re.compile(r'^[a-z0-9](?:[a-z0-9-]{0,48}[a-z0-9])?$')
PLANS = ('monthly', 'quarterly', 'annual')


class TenantRegistry:
    """
    Manages groups (tenants):
    - Create group records
    - Look groups up by subdomain
    - Move subscription status through its lifecycle
    - Gate roster access on that status
    """

    def create_tenant(
        self,
        name: str,
        subdomain: str,
        status: str = 'trial',
        plan: str = None,
        whatsapp_number: str = None,
        whatsapp_api_token: str = None,
        due_date: date = None
    ) -> Tenant:
        """Create a new group."""
        subdomain = (subdomain or '').strip().lower()
        if not name or not SUBDOMAIN_PATTERN.match(subdomain):
            raise ValidationError("Group name and a valid subdomain are required")
        if plan is not None and plan not in PLANS:
            raise ValidationError(f"Plan must be one of: {', '.join(PLANS)}")
        try:
            TenantStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown status: {status}")
        if self.get_by_subdomain(subdomain):
            raise ValidationError(f"Subdomain already taken: {subdomain}")

        tenant = Tenant(
            name=name,
            subdomain=subdomain,
            status=status,
            plan=plan,
            whatsapp_number=whatsapp_number,
            due_date=due_date
        )
        tenant.whatsapp_api_token = whatsapp_api_token

        db.session.add(tenant)
        db.session.commit()

        logger.info("Created tenant %s (%s)", subdomain, status)
        return tenant

    def get_by_subdomain(self, subdomain: str) -> Optional[Tenant]:
        return Tenant.query.filter_by(subdomain=(subdomain or '').lower()).first()

    def ensure_default_tenant(self, subdomain: str = 'principal') -> Tenant:
        """Return the default group, creating it on first deploy."""
        tenant = self.get_by_subdomain(subdomain)
        if tenant:
            return tenant
        return self.create_tenant(name='Main Group', subdomain=subdomain, status='active', plan='monthly')

    def change_status(self, subdomain: str, action: str) -> Tuple[bool, str]:
        """Apply a lifecycle action (activate, suspend, cancel, reactivate)."""
        tenant = self.get_by_subdomain(subdomain)

        if not tenant:
            return False, "Group not found"

        sm = TenantStatusMachine.from_state_string(tenant.status)

        if not sm.can_transition(action):
            return False, f"Cannot {action} group in {tenant.status} state"

        try:
            old_state = sm.state.value
            new_state = sm.transition(action)
            tenant.status = new_state.value
            db.session.commit()

            logger.info("Tenant %s: %s -> %s", subdomain, old_state, new_state.value)
            return True, f"Group {subdomain} is now {new_state.value}"

        except TransitionError as e:
            return False, str(e)

    def require_serving(self, subdomain: str, today: date = None) -> Tenant:
        """
        Resolve a group that may take sign-ups right now.

        Raises NotFoundError for unknown subdomains and TenantInactiveError
        when the subscription is suspended, canceled or past its due date.
        """
        tenant = self.get_by_subdomain(subdomain)
        if not tenant:
            raise NotFoundError("Group not found")

        sm = TenantStatusMachine.from_state_string(tenant.status)
        if not sm.is_serving:
            raise TenantInactiveError(f"Group subscription is {tenant.status}")
        if tenant.is_expired(today):
            raise TenantInactiveError("Group subscription has expired")

        return tenant
