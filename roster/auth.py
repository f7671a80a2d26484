import logging
from datetime import datetime
from functools import wraps
from typing import Optional

from flask import current_app, jsonify, request, g
from flask_login import LoginManager, current_user

from .models import db, User
from .session_store import Principal

logger = logging.getLogger(__name__)

login_manager = LoginManager()


def bearer_token(req=None) -> Optional[str]:
    header = (req or request).headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


@login_manager.user_loader
def load_user(user_id: str) -> Optional[User]:
    return db.session.get(User, int(user_id))


@login_manager.request_loader
def load_user_from_request(req) -> Optional[User]:
    """Resolve `Authorization: Bearer <token>` through the session store."""
    token = bearer_token(req)
    if not token:
        return None

    principal = current_app.session_store.resolve(token)
    if principal is None:
        return None

    user = db.session.get(User, principal.user_id)
    if not user or not user.is_active or user.tenant_id != principal.tenant_id:
        return None

    g.principal = principal
    return user


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Authentication required'}), 401


def authenticate(email: str, password: str) -> Optional[str]:
    """Check credentials and open a session. Returns the bearer token."""
    if not isinstance(email, str) or not isinstance(password, str):
        return None
    user = User.query.filter_by(email=(email or '').strip().lower()).first()
    if not user or not user.is_active or not user.check_password(password or ''):
        logger.warning("Failed login for %r", email)
        return None

    user.last_login = datetime.utcnow()
    db.session.commit()

    token = current_app.session_store.create(
        Principal(user_id=user.id, tenant_id=user.tenant_id, role=user.role)
    )
    logger.info("User %s logged in", user.id)
    return token


def tenant_admin_required(view):
    """
    Require a logged-in admin of the group named in the URL.
    Must wrap views that receive the group as `g.tenant`.
    """
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            return current_app.login_manager.unauthorized()
        if not current_user.can_manage(g.tenant):
            return jsonify({'error': 'Not allowed to manage this group'}), 403
        return view(*args, **kwargs)
    return wrapped
