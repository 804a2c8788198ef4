#!/usr/bin/env python
"""Database initialization script for the translation backend.

This script creates all database tables based on the SQLAlchemy models.
Run this once before starting the application for the first time.

Usage:
    python init_db.py
"""

import os
import sys
from app import create_app, db, mask_database_url


def init_database():
    """Initialize the database by creating all tables."""

    config_name = os.getenv('FLASK_ENV', 'development')
    app = create_app(config_name)

    print(f"\n{'='*60}")
    print(f"Database Initialization for {config_name.upper()} Environment")
    print(f"{'='*60}\n")

    with app.app_context():
        try:
            print("Creating database tables...")
            print(f"Database URI: {mask_database_url(app.config['SQLALCHEMY_DATABASE_URI'])}\n")

            db.create_all()

            print("✅ Database tables created successfully!\n")

            tables_info = [
                ("users", "Accounts and authentication"),
                ("subscriptions", "Stripe subscription state"),
                ("translation_cache", "Cached translations per domain"),
                ("translation_usage", "Per-segment usage analytics"),
            ]

            print("Created tables:")
            for table_name, description in tables_info:
                print(f"  ✓ {table_name:<25} - {description}")

            print(f"\n{'='*60}")
            print("✅ Database initialization complete!")
            print(f"{'='*60}\n")
            return True

        except Exception as e:
            print(f"❌ Error creating database: {e}\n")
            print(f"Traceback: {type(e).__name__}: {str(e)}")
            return False


if __name__ == '__main__':
    success = init_database()
    sys.exit(0 if success else 1)
