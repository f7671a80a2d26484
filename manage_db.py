#!/usr/bin/env python3
"""
Database management script for deployment.
Run this during the build/deployment pipeline to handle migrations.
"""
import os
import sys

# Add current directory to path so we can import roster
sys.path.append(os.getcwd())

from roster.app import create_app
from flask_migrate import upgrade

MIGRATIONS_DIR = os.path.join(os.getcwd(), 'migrations')


def deploy():
    """Run deployment tasks."""
    print("Starting database migration...")
    app = create_app()
    with app.app_context():
        # create_app() already ran create_all(); Alembic only applies when set up
        if os.path.isdir(MIGRATIONS_DIR):
            try:
                upgrade(directory=MIGRATIONS_DIR)
                print("✓ Database migrations applied.")
            except Exception as e:
                print(f"Error applying migrations: {e}")
                sys.exit(1)

        tenant = app.tenants.ensure_default_tenant(app.config['DEFAULT_TENANT_SUBDOMAIN'])
        print(f"✓ Default group ready: {tenant.subdomain}")


if __name__ == '__main__':
    deploy()
