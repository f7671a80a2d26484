from datetime import date

import click
from flask import Flask, current_app

from .errors import ValidationError
from .models import db, User


def register_commands(app: Flask):
    """Register `flask` CLI commands for deployment and support tasks."""

    @app.cli.command('init-db')
    def init_db():
        """Create tables and the default group."""
        db.create_all()
        tenant = current_app.tenants.ensure_default_tenant(current_app.config['DEFAULT_TENANT_SUBDOMAIN'])
        click.echo(f"✓ Database ready, default group: {tenant.subdomain}")

    @app.cli.command('create-tenant')
    @click.argument('subdomain')
    @click.argument('name')
    @click.option('--status', default='trial', show_default=True)
    @click.option('--plan', default=None)
    @click.option('--whatsapp-number', default=None)
    @click.option('--whatsapp-token', default=None)
    @click.option('--due-date', default=None, help='YYYY-MM-DD')
    def create_tenant(subdomain, name, status, plan, whatsapp_number, whatsapp_token, due_date):
        """Create a group."""
        try:
            tenant = current_app.tenants.create_tenant(
                name=name,
                subdomain=subdomain,
                status=status,
                plan=plan,
                whatsapp_number=whatsapp_number,
                whatsapp_api_token=whatsapp_token,
                due_date=date.fromisoformat(due_date) if due_date else None
            )
        except (ValidationError, ValueError) as e:
            raise click.ClickException(str(e))
        click.echo(f"✓ Created group {tenant.subdomain} (id {tenant.id})")

    @app.cli.command('create-user')
    @click.argument('subdomain')
    @click.argument('email')
    @click.argument('name')
    @click.option('--role', type=click.Choice(['super_admin', 'tenant_admin', 'member']),
                  default='tenant_admin', show_default=True)
    @click.password_option()
    def create_user(subdomain, email, name, role, password):
        """Create a login for a group."""
        tenant = current_app.tenants.get_by_subdomain(subdomain)
        if not tenant:
            raise click.ClickException(f"Group not found: {subdomain}")
        if User.query.filter_by(email=email.strip().lower()).first():
            raise click.ClickException(f"Email already registered: {email}")

        user = User.create_user(tenant, email, password, name, role=role)
        db.session.add(user)
        db.session.commit()
        click.echo(f"✓ Created {role} {user.email}")

    @app.cli.command('tenant-status')
    @click.argument('subdomain')
    @click.argument('action', type=click.Choice(['activate', 'suspend', 'cancel', 'reactivate']))
    def tenant_status(subdomain, action):
        """Move a group's subscription status."""
        success, message = current_app.tenants.change_status(subdomain, action)
        if not success:
            raise click.ClickException(message)
        click.echo(f"✓ {message}")
