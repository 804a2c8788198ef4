"""Core authentication routes: signup, login and current user."""

from flask import request, jsonify, current_app
from app import db, limiter
from app.models import User
from app.routes.auth import auth_bp
from app.services.stripe_service import StripeService, user_has_active_subscription
from app.utils.auth import generate_token, token_required
import re

# Email validation regex
EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

MIN_PASSWORD_LENGTH = 8


def _read_credentials(data):
    """Return (email, password) or an error message."""
    email = data.get('email')
    password = data.get('password')
    if not email or not password or not isinstance(email, str) or not isinstance(password, str):
        return None, None, 'Email and password required'
    return email.strip().lower(), password, None


@auth_bp.route('/auth/signup', methods=['POST'])
@limiter.limit("5 per minute")
def signup():
    """Create an account and its Stripe customer."""
    if not StripeService.is_configured():
        return jsonify({'error': 'Payment system not configured'}), 503

    data = request.get_json(silent=True) or {}
    email, password, error = _read_credentials(data)
    if error:
        return jsonify({'error': error}), 400

    if not EMAIL_REGEX.match(email):
        return jsonify({'error': 'Invalid email format'}), 400

    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({'error': f'Password must be at least {MIN_PASSWORD_LENGTH} characters'}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({'error': 'Email already registered'}), 400

    try:
        customer_id = StripeService.create_customer(email)

        user = User(email=email, stripe_customer_id=customer_id)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()

        return jsonify({
            'token': generate_token(user.id),
            'user': user.to_dict(),
            'hasAccess': False,
        }), 201
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Signup error: {str(e)}')
        return jsonify({'error': 'Internal server error'}), 500


@auth_bp.route('/auth/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    """Exchange email and password for a token."""
    data = request.get_json(silent=True) or {}
    email, password, error = _read_credentials(data)
    if error:
        return jsonify({'error': error}), 400

    try:
        user = User.query.filter_by(email=email).first()
        if not user or not user.check_password(password):
            return jsonify({'error': 'Invalid credentials'}), 401

        return jsonify({
            'token': generate_token(user.id),
            'user': user.to_dict(),
            'hasAccess': user_has_active_subscription(user.id),
        }), 200
    except Exception as e:
        current_app.logger.error(f'Login error: {str(e)}')
        return jsonify({'error': 'Internal server error'}), 500


@auth_bp.route('/me', methods=['GET'])
@token_required
def me(current_user_id):
    """Current user with access flag."""
    user = db.session.get(User, current_user_id)
    if not user:
        return jsonify({'error': 'User not found'}), 404

    return jsonify({
        'id': user.id,
        'email': user.email,
        'hasAccess': user_has_active_subscription(user.id),
    }), 200
