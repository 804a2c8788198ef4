"""Billing routes: Stripe Checkout and webhook."""

from flask import Blueprint, request, jsonify, current_app
from app import db
from app.models import User
from app.services.stripe_service import StripeService
from app.utils.auth import token_required
import stripe

billing_bp = Blueprint('billing', __name__)


@billing_bp.route('/billing/create-checkout-session', methods=['POST'])
@token_required
def create_checkout_session(current_user_id):
    """Start a subscription checkout for the current user.

    Returns:
        checkoutUrl: Stripe hosted checkout page
    """
    if not StripeService.is_configured():
        return jsonify({'error': 'Payment system not configured'}), 503

    user = db.session.get(User, current_user_id)
    if not user or not user.stripe_customer_id:
        return jsonify({'error': 'Missing Stripe customer'}), 400

    try:
        checkout_url = StripeService.create_checkout_session(user)
        return jsonify({'checkoutUrl': checkout_url}), 200
    except Exception as e:
        current_app.logger.error(f'Checkout session error: {str(e)}')
        return jsonify({'error': 'Internal server error'}), 500


@billing_bp.route('/stripe/webhook', methods=['POST'])
def stripe_webhook():
    """Receive subscription lifecycle events from Stripe."""
    if not StripeService.is_configured():
        return jsonify({'error': 'Payment system not configured'}), 503

    payload = request.get_data()
    signature = request.headers.get('Stripe-Signature', '')

    try:
        event = StripeService.construct_event(payload, signature)
    except (ValueError, stripe.SignatureVerificationError) as e:
        current_app.logger.warning(f'Webhook signature verification failed: {str(e)}')
        return jsonify({'error': f'Webhook Error: {str(e)}'}), 400

    try:
        StripeService.handle_event(event)
        return jsonify({'received': True}), 200
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Webhook handler error: {str(e)}')
        return jsonify({'error': 'Webhook handler failed'}), 500
