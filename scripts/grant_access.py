#!/usr/bin/env python3
"""Give a user lifetime access without a paid subscription.

Usage:
    python scripts/grant_access.py user@example.com
"""

import sys
import os
from datetime import datetime

# Add parent directory to path to import app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app, db
from app.models import Subscription, User

LIFETIME_END = datetime(2099, 12, 31, 23, 59, 59)


def grant_access(email: str, assume_yes: bool = False) -> bool:
    """Activate the user's latest subscription, or add a manual one.

    Returns:
        True if access was granted, False otherwise
    """
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user:
        print(f"❌ User not found: {email}")
        print("\nUser must sign up first before granting access.")
        return False

    print(f"✓ Found user: {user.email} (ID: {user.id})")

    subscription = Subscription.query.filter_by(user_id=user.id).order_by(
        Subscription.created_at.desc()
    ).first()

    try:
        if subscription:
            print(f"\n⚠ User already has subscription (status: {subscription.status})")
            if not assume_yes and input("Update to active status? (y/n): ").lower() != 'y':
                print("Cancelled.")
                return False

            subscription.status = 'active'
            subscription.current_period_end = LIFETIME_END
            db.session.commit()
            print("✓ Subscription updated to active with lifetime access!")
        else:
            manual_id = f"manual_grant_{int(datetime.utcnow().timestamp() * 1000)}"
            db.session.add(Subscription(
                user_id=user.id,
                stripe_subscription_id=manual_id,
                status='active',
                current_period_end=LIFETIME_END,
            ))
            db.session.commit()

            print("\n✓ Access granted successfully!")
            print(f"   Subscription ID: {manual_id}")
            print("   Status: active")
            print(f"   Expires: {LIFETIME_END} (lifetime)")
        return True
    except Exception as e:
        db.session.rollback()
        print(f"❌ Error: {e}")
        return False


if __name__ == '__main__':
    if len(sys.argv) < 2:
        print("Usage: python scripts/grant_access.py <user@email.com>")
        sys.exit(1)

    app = create_app()
    with app.app_context():
        sys.exit(0 if grant_access(sys.argv[1]) else 1)
