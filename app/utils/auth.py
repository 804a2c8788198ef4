"""Shared authentication utilities.

JWT helpers used by every route that needs a signed-in user.
"""

from datetime import datetime, timedelta, timezone
from functools import wraps
from flask import request, jsonify, current_app
import jwt


def _get_secret_key():
    """Get JWT secret from Flask app config (single source of truth)."""
    return current_app.config['JWT_SECRET_KEY']


def generate_token(user_id):
    """Issue an HS256 token carrying ``user_id``."""
    expires = datetime.now(timezone.utc) + timedelta(seconds=current_app.config['JWT_ACCESS_TOKEN_EXPIRES'])
    payload = {'user_id': user_id, 'exp': expires}
    return jwt.encode(payload, _get_secret_key(), algorithm='HS256')


def token_required(f):
    """
    Decorator to require valid JWT token.

    Extracts user_id from the ``Authorization: Bearer <token>`` header and
    passes it as the first argument to the decorated function.

    Usage:
        @bp.route('/protected')
        @token_required
        def protected_route(current_user_id):
            return jsonify({'user_id': current_user_id})
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get('Authorization', '')
        token = auth_header[7:] if auth_header.startswith('Bearer ') else None

        if not token:
            return jsonify({'error': 'Missing token'}), 401

        try:
            payload = jwt.decode(token, _get_secret_key(), algorithms=['HS256'])
            current_user_id = payload['user_id']
        except jwt.ExpiredSignatureError:
            return jsonify({'error': 'Token has expired'}), 401
        except (jwt.InvalidTokenError, KeyError):
            return jsonify({'error': 'Invalid token'}), 401

        return f(current_user_id, *args, **kwargs)
    return decorated
