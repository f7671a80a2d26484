import os
from flask import Flask, jsonify
from flask_migrate import Migrate
import redis

from .config import config
from .models import db
from .auth import login_manager
from .errors import RosterError
from .session_store import SessionStore
from .tenant_registry import TenantRegistry

migrate = Migrate()


def create_app(config_name: str = None, redis_client: redis.Redis = None) -> Flask:
    """Application factory for the roster service."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    if redis_client is None:
        redis_client = redis.from_url(
            app.config['REDIS_URL'],
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5
        )

    # Store services on app for access in routes
    app.redis = redis_client
    app.session_store = SessionStore(redis_client, ttl_seconds=app.config['SESSION_TTL_SECONDS'])
    app.tenants = TenantRegistry()

    # Create tables
    with app.app_context():
        db.create_all()

    register_error_handlers(app)
    register_api_routes(app)

    from .routes import roster, auth
    app.register_blueprint(roster.bp)
    app.register_blueprint(auth.bp)

    from .cli import register_commands
    register_commands(app)

    return app


def register_error_handlers(app: Flask):

    @app.errorhandler(RosterError)
    def handle_roster_error(error: RosterError):
        return jsonify(error.to_dict()), error.status_code


def register_api_routes(app: Flask):

    @app.route('/api/v1/health')
    def health_check():
        """Health check endpoint."""
        try:
            app.redis.ping()
            redis_ok = True
        except redis.exceptions.RedisError:
            redis_ok = False

        try:
            db.session.execute(db.text('SELECT 1'))
            db_ok = True
        except Exception:
            db.session.rollback()
            db_ok = False

        status = 'healthy' if (redis_ok and db_ok) else 'unhealthy'
        code = 200 if status == 'healthy' else 503

        return jsonify({
            'status': status,
            'redis': 'connected' if redis_ok else 'disconnected',
            'database': 'connected' if db_ok else 'disconnected'
        }), code
