from datetime import datetime, date
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from cryptography.fernet import Fernet
from werkzeug.security import generate_password_hash, check_password_hash
import os
import base64
import hashlib

from .constants import DEFAULT_GENDER, canonical_gender

db = SQLAlchemy()

def get_encryption_key():
    """Derive the Fernet key from SECRET_KEY."""
    secret = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-prod')
    key = hashlib.sha256(secret.encode()).digest()
    return base64.urlsafe_b64encode(key)

def encrypt_secret(value: str) -> str:
    """Encrypt a third-party credential for storage."""
    f = Fernet(get_encryption_key())
    return f.encrypt(value.encode()).decode()

def decrypt_secret(encrypted: str) -> str:
    f = Fernet(get_encryption_key())
    return f.decrypt(encrypted.encode()).decode()


class Tenant(db.Model):
    __tablename__ = 'tenants'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    subdomain = db.Column(db.String(50), unique=True, nullable=False, index=True)
    whatsapp_number = db.Column(db.String(20), nullable=True)
    whatsapp_api_token_encrypted = db.Column(db.String(500), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='trial')  # trial, active, suspended, canceled
    plan = db.Column(db.String(20), nullable=True)  # monthly, quarterly, annual
    start_date = db.Column(db.Date, default=date.today)
    due_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    users = db.relationship('User', back_populates='tenant', cascade='all, delete-orphan')

    @property
    def whatsapp_api_token(self) -> str:
        if not self.whatsapp_api_token_encrypted:
            return None
        return decrypt_secret(self.whatsapp_api_token_encrypted)

    @whatsapp_api_token.setter
    def whatsapp_api_token(self, value: str):
        self.whatsapp_api_token_encrypted = encrypt_secret(value) if value else None

    def is_expired(self, today: date = None) -> bool:
        if not self.due_date:
            return False
        return self.due_date < (today or date.today())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'subdomain': self.subdomain,
            'whatsapp_number': self.whatsapp_number,
            'has_whatsapp_token': bool(self.whatsapp_api_token_encrypted),
            'status': self.status,
            'plan': self.plan,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'due_date': self.due_date.isoformat() if self.due_date else None,
        }


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False, index=True)
    email = db.Column(db.String(100), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    role = db.Column(db.String(20), nullable=False, default='tenant_admin')  # super_admin, tenant_admin, member
    active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime, nullable=True)

    tenant = db.relationship('Tenant', back_populates='users')

    @property
    def is_active(self) -> bool:
        """Flask-Login refuses inactive accounts."""
        return bool(self.active)

    @property
    def is_super_admin(self) -> bool:
        return self.role == 'super_admin'

    def can_manage(self, tenant: Tenant) -> bool:
        """Admins manage their own group; super admins manage every group."""
        if self.is_super_admin:
            return True
        return self.role == 'tenant_admin' and self.tenant_id == tenant.id

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @staticmethod
    def create_user(tenant: Tenant, email: str, password: str, name: str, role: str = 'tenant_admin') -> 'User':
        user = User(
            tenant_id=tenant.id,
            email=email.strip().lower(),
            name=name,
            role=role
        )
        user.set_password(password)
        return user

    def to_dict(self):
        return {
            'id': self.id,
            'tenant_id': self.tenant_id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'last_login': self.last_login.isoformat() if self.last_login else None,
        }


class Participant(db.Model):
    """One confirmation in a group's current session."""
    __tablename__ = 'participants'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    name_key = db.Column(db.String(100), nullable=False)  # lower-cased name
    category = db.Column(db.String(20), nullable=False)  # monthly, casual
    gender = db.Column(db.String(20), nullable=True, default=DEFAULT_GENDER)
    confirmed_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'name_key', name='unique_name_per_session'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'gender': canonical_gender(self.gender),
            'confirmed_at': self.confirmed_at.isoformat() if self.confirmed_at else None,
        }


class AttendanceLog(db.Model):
    """Append-only history of confirmations, kept across session clears."""
    __tablename__ = 'attendance_log'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(20), nullable=False)
    gender = db.Column(db.String(20), nullable=True)
    confirmed_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
