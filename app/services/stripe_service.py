"""Stripe subscription service and access checks."""

import logging
from datetime import datetime, timezone

import stripe
from flask import current_app

from app import db
from app.models import Subscription, User

logger = logging.getLogger(__name__)

# Statuses that grant access to /translate
ACTIVE_STATUSES = ('active', 'trialing')


def _field(obj, name):
    """Read an optional field from a Stripe object or plain dict."""
    try:
        return obj[name]
    except KeyError:
        return None


def _period_end(timestamp):
    if not timestamp:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).replace(tzinfo=None)


def user_has_active_subscription(user_id) -> bool:
    """Check whether a user may translate.

    Manual access (``has_access``) wins; otherwise the latest subscription
    must be active/trialing and not past its period end.
    """
    user = db.session.get(User, user_id)
    if user is not None and user.has_access:
        return True

    subscription = Subscription.query.filter_by(user_id=user_id).order_by(
        Subscription.created_at.desc(), Subscription.id.desc()
    ).first()
    if not subscription:
        return False
    if subscription.status not in ACTIVE_STATUSES:
        return False
    if subscription.current_period_end and subscription.current_period_end < datetime.utcnow():
        return False
    return True


class StripeService:
    """Service for Stripe customers, checkout and webhook events."""

    @staticmethod
    def is_configured():
        return bool(current_app.config.get('STRIPE_SECRET_KEY'))

    @staticmethod
    def _configure():
        stripe.api_key = current_app.config['STRIPE_SECRET_KEY']

    @staticmethod
    def create_customer(email):
        """Create a Stripe customer and return its ID."""
        StripeService._configure()
        customer = stripe.Customer.create(email=email)
        return customer['id']

    @staticmethod
    def create_checkout_session(user):
        """Create a subscription Checkout session for a user.

        Returns:
            str: hosted checkout URL
        """
        StripeService._configure()
        base_url = current_app.config['FRONTEND_BASE_URL']
        session = stripe.checkout.Session.create(
            mode='subscription',
            customer=user.stripe_customer_id,
            line_items=[{'price': current_app.config['STRIPE_PRICE_ID'], 'quantity': 1}],
            success_url=f'{base_url}/newtab-success.html?session_id={{CHECKOUT_SESSION_ID}}',
            cancel_url=f'{base_url}/newtab-cancel.html',
            allow_promotion_codes=True,
            metadata={'userId': str(user.id)},
        )
        return session['url']

    @staticmethod
    def construct_event(payload, signature):
        """Verify a webhook payload.

        Raises:
            ValueError: invalid payload
            stripe.SignatureVerificationError: bad signature
        """
        return stripe.Webhook.construct_event(
            payload, signature, current_app.config['STRIPE_WEBHOOK_SECRET']
        )

    @staticmethod
    def handle_event(event):
        """Apply a webhook event to local subscription state.

        Returns:
            bool: True if the event type was handled
        """
        event_type = event['type']
        obj = event['data']['object']

        if event_type == 'checkout.session.completed':
            subscription_id = _field(obj, 'subscription')
            if not subscription_id:
                return True
            user_id = int(obj['metadata']['userId'])
            StripeService._configure()
            stripe_sub = stripe.Subscription.retrieve(subscription_id)
            StripeService.upsert_subscription(
                user_id,
                stripe_sub['id'],
                stripe_sub['status'],
                _period_end(_field(stripe_sub, 'current_period_end')),
            )
            logger.info(f"Subscription created for user {user_id}")
            return True

        if event_type == 'customer.subscription.updated':
            StripeService.update_subscription(
                obj['id'], obj['status'], _period_end(_field(obj, 'current_period_end'))
            )
            logger.info(f"Subscription {obj['id']} updated to {obj['status']}")
            return True

        if event_type == 'customer.subscription.deleted':
            StripeService.update_subscription(obj['id'], 'canceled', None)
            logger.info(f"Subscription {obj['id']} deleted")
            return True

        logger.info(f"Unhandled event type: {event_type}")
        return False

    @staticmethod
    def upsert_subscription(user_id, stripe_subscription_id, status, current_period_end):
        subscription = Subscription.query.filter_by(stripe_subscription_id=stripe_subscription_id).first()
        if subscription is None:
            subscription = Subscription(
                user_id=user_id,
                stripe_subscription_id=stripe_subscription_id,
            )
            db.session.add(subscription)
        subscription.status = status
        subscription.current_period_end = current_period_end
        db.session.commit()
        return subscription

    @staticmethod
    def update_subscription(stripe_subscription_id, status, current_period_end):
        subscription = Subscription.query.filter_by(stripe_subscription_id=stripe_subscription_id).first()
        if subscription is None:
            logger.warning(f"Webhook for unknown subscription {stripe_subscription_id}")
            return None
        subscription.status = status
        subscription.current_period_end = current_period_end
        db.session.commit()
        return subscription
