from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from roster.auth import authenticate, bearer_token

bp = Blueprint('auth', __name__, url_prefix='/api/v1/auth')


@bp.route('/login', methods=['POST'])
def login():
    """Exchange email and password for a bearer token."""
    data = request.get_json(silent=True) or {}
    email = data.get('email')
    password = data.get('password')

    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400
    if not isinstance(email, str) or not isinstance(password, str):
        return jsonify({'error': 'Email and password must be strings'}), 400

    token = authenticate(email, password)
    if not token:
        return jsonify({'error': 'Invalid credentials'}), 401

    return jsonify({
        'token': token,
        'token_type': 'Bearer',
        'expires_in': current_app.config['SESSION_TTL_SECONDS']
    })


@bp.route('/logout', methods=['POST'])
@login_required
def logout():
    current_app.session_store.revoke(bearer_token())
    return jsonify({'message': 'Logged out'})


@bp.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify({
        'user': current_user.to_dict(),
        'tenant': current_user.tenant.to_dict()
    })
