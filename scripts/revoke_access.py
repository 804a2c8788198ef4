#!/usr/bin/env python3
"""Revoke a user's access by canceling their latest subscription.

Usage:
    python scripts/revoke_access.py user@example.com
"""

import sys
import os

# Add parent directory to path to import app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app, db
from app.models import Subscription, User


def revoke_access(email: str, assume_yes: bool = False) -> bool:
    """Set the latest subscription to 'canceled' and clear manual access.

    Returns:
        True if access was revoked, False otherwise
    """
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user:
        print(f"❌ User not found: {email}")
        return False

    print(f"✓ Found user: {user.email} (ID: {user.id})")

    subscription = Subscription.query.filter_by(user_id=user.id).order_by(
        Subscription.created_at.desc()
    ).first()

    if not subscription and not user.has_access:
        print("⚠ User has no subscription.")
        return False

    if subscription:
        print("\nCurrent subscription:")
        print(f"  ID: {subscription.stripe_subscription_id}")
        print(f"  Status: {subscription.status}")

    if not assume_yes and input("\nRevoke access (set status to 'canceled')? (y/n): ").lower() != 'y':
        print("Cancelled.")
        return False

    try:
        if subscription:
            subscription.status = 'canceled'
        user.has_access = False
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        print(f"❌ Error: {e}")
        return False

    print("\n✓ Access revoked successfully!")
    print("  Status changed to: canceled")
    return True


if __name__ == '__main__':
    if len(sys.argv) < 2:
        print("Usage: python scripts/revoke_access.py <user@email.com>")
        sys.exit(1)

    app = create_app()
    with app.app_context():
        sys.exit(0 if revoke_access(sys.argv[1]) else 1)
