"""Subscription model mirroring Stripe subscription state."""

from datetime import datetime
from app import db


class Subscription(db.Model):
    """Stripe subscription for a user."""

    __tablename__ = 'subscriptions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    stripe_subscription_id = db.Column(db.String(255), unique=True, nullable=False, index=True)

    # Status tracking (Stripe statuses)
    status = db.Column(db.String(30), nullable=False)
    # 'active', 'trialing' - access granted
    # 'past_due', 'unpaid', 'incomplete' - no access
    # 'canceled' - subscription ended

    current_period_end = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        """Convert subscription to dictionary."""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'stripe_subscription_id': self.stripe_subscription_id,
            'status': self.status,
            'current_period_end': self.current_period_end.isoformat() if self.current_period_end else None,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }

    def __repr__(self):
        return f'<Subscription {self.stripe_subscription_id} - {self.status}>'
