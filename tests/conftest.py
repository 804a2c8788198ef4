"""
Pytest configuration and fixtures for testing the translation backend.
"""

import os
import sys
import pytest
from datetime import datetime, timedelta
from faker import Faker

# Add the parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app import create_app, db
from app.models import Subscription, User

fake = Faker()


class FakeTranslator:
    """Stands in for the upstream provider; records every batch it gets."""

    def __init__(self, translate=None):
        self.calls = []
        self.translate = translate or (lambda text, source, target: f'{target}:{text}')
        self.error = None
        self.override = None

    def translate_batch(self, texts, source_lang, target_lang):
        self.calls.append(list(texts))
        if self.error is not None:
            raise self.error
        if self.override is not None:
            return self.override
        return [self.translate(text, source_lang, target_lang) for text in texts]


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    os.environ['FLASK_ENV'] = 'testing'

    app = create_app('testing')
    app.config['JWT_SECRET_KEY'] = 'test-secret-key-for-testing'

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client for each test function."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create a fresh database session for each test."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        yield db.session
        db.session.rollback()


@pytest.fixture
def fake_translator(app):
    """Swap the upstream provider for a FakeTranslator for one test."""
    resolver = app.extensions['batch_resolver']
    original = resolver.translator
    translator = FakeTranslator()
    resolver.translator = translator
    yield translator
    resolver.translator = original


def _create_user(password='testpassword123', has_access=False, **overrides):
    """Helper to create a user with sensible defaults."""
    user = User(
        email=overrides.get('email', fake.unique.email().lower()),
        stripe_customer_id=overrides.get('stripe_customer_id', f'cus_{fake.pystr(min_chars=10, max_chars=14)}'),
        has_access=has_access,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return {
        'id': user.id,
        'email': user.email,
        'password': password,
        'stripe_customer_id': user.stripe_customer_id,
    }


def _add_subscription(user_id, status='active', period_end=None):
    subscription = Subscription(
        user_id=user_id,
        stripe_subscription_id=f'sub_{fake.pystr(min_chars=10, max_chars=14)}',
        status=status,
        current_period_end=period_end or datetime.utcnow() + timedelta(days=30),
    )
    db.session.add(subscription)
    db.session.commit()
    return subscription.stripe_subscription_id


@pytest.fixture
def test_user(app, db_session):
    """Create a user without access."""
    with app.app_context():
        return _create_user()


@pytest.fixture
def subscribed_user(app, db_session):
    """Create a user with an active subscription."""
    with app.app_context():
        user = _create_user()
        user['subscription_id'] = _add_subscription(user['id'])
        return user


def _get_token(client, email, password):
    """Login and return JWT token."""
    resp = client.post('/auth/login', json={
        'email': email,
        'password': password,
    })
    data = resp.get_json()
    if data is None or 'token' not in data:
        raise RuntimeError(f"Login failed: status={resp.status_code}, body={resp.data[:200]}")
    return data['token']


@pytest.fixture
def auth_headers(client, test_user):
    """Authentication headers for a user without access."""
    token = _get_token(client, test_user['email'], test_user['password'])
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def subscribed_headers(client, subscribed_user):
    """Authentication headers for a subscribed user."""
    token = _get_token(client, subscribed_user['email'], subscribed_user['password'])
    return {'Authorization': f'Bearer {token}'}
