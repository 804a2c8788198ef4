from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from datetime import datetime, timezone
import atexit
import logging
import os
import re
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()
limiter = Limiter(key_func=get_remote_address)

logger = logging.getLogger(__name__)


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in ('true', '1', 'yes')


def _database_url():
    url = os.getenv('DATABASE_URL', 'sqlite:///translations.db')
    # Render/Heroku style URLs
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


def mask_database_url(url):
    """Hide the password part of a database URL for logging."""
    return re.sub(r'(://[^:/@]+:)([^@]+)(@)', r'\1****\3', url or '')


def _engine_options(url):
    if not url.startswith('postgresql'):
        return {}
    return {
        'pool_size': 10,
        'max_overflow': 0,
        'pool_timeout': 10,
        'pool_recycle': 300,
        'pool_pre_ping': True,
        'connect_args': {
            'connect_timeout': 10,
            'sslmode': os.getenv('DATABASE_SSLMODE', 'require'),
        },
    }


def create_app(config_name='development'):
    app = Flask(__name__)

    # Config
    database_url = _database_url()
    app.config['SQLALCHEMY_DATABASE_URI'] = database_url
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = _engine_options(database_url)
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', 2592000))  # 30 days

    app.config['TRANSLATION_CACHE_ENABLED'] = _env_bool('TRANSLATION_CACHE_ENABLED', True)
    app.config['TRANSLATION_SERVICE'] = os.getenv('TRANSLATION_SERVICE', 'google')
    app.config['GOOGLE_TRANSLATE_API_KEY'] = os.getenv('GOOGLE_TRANSLATE_API_KEY', '')
    app.config['DEEPL_API_KEY'] = os.getenv('DEEPL_API_KEY', '')
    app.config['TRANSLATION_TIMEOUT'] = float(os.getenv('TRANSLATION_TIMEOUT', 10))
    app.config['MAX_REQUEST_CHARS'] = int(os.getenv('MAX_REQUEST_CHARS', 8000))
    app.config['MAX_SEGMENT_CHARS'] = int(os.getenv('MAX_SEGMENT_CHARS', 1000))
    app.config['BACKGROUND_WORKERS'] = int(os.getenv('BACKGROUND_WORKERS', 4))
    app.config['BACKGROUND_TASKS_SYNC'] = _env_bool('BACKGROUND_TASKS_SYNC', False)

    app.config['STRIPE_SECRET_KEY'] = os.getenv('STRIPE_SECRET_KEY', '')
    app.config['STRIPE_WEBHOOK_SECRET'] = os.getenv('STRIPE_WEBHOOK_SECRET', '')
    app.config['STRIPE_PRICE_ID'] = os.getenv('STRIPE_PRICE_ID', '')
    app.config['FRONTEND_BASE_URL'] = os.getenv('FRONTEND_BASE_URL', 'http://localhost:3000')

    app.config['RATELIMIT_STORAGE_URI'] = os.getenv('REDIS_URL', 'memory://')
    app.config['RATELIMIT_ENABLED'] = _env_bool('RATELIMIT_ENABLED', True)

    if config_name == 'testing':
        app.config['TESTING'] = True
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite://'
        app.config['SQLALCHEMY_ENGINE_OPTIONS'] = {}
        app.config['BACKGROUND_TASKS_SYNC'] = True
        app.config['RATELIMIT_ENABLED'] = False

    # Initialize extensions
    db.init_app(app)
    limiter.init_app(app)
    CORS(app, origins='*')

    logger.info("Database URL: %s", mask_database_url(app.config['SQLALCHEMY_DATABASE_URI']))

    # Create tables with error handling
    engine = None
    with app.app_context():
        from app import models  # noqa: F401  (register tables on db.metadata)
        try:
            db.create_all()
            engine = db.engine
        except Exception as e:
            logger.warning(f"Could not initialize database, running without cache: {e}")

    _init_translation_services(app, engine)

    # Register routes
    from app.routes import register_routes
    register_routes(app)

    # Health check
    @app.route('/health', methods=['GET'])
    def health():
        from app.errors import CacheUnavailable

        store = app.extensions['translation_cache']
        if not store.enabled:
            cache_status = 'disabled'
        else:
            try:
                store.check_connection()
                cache_status = 'ok'
            except CacheUnavailable:
                cache_status = 'unavailable'

        return {
            'status': 'ok',
            'message': 'Backend is healthy',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'cache': cache_status,
        }, 200

    return app


def _init_translation_services(app, engine):
    """Build the process-scoped collaborators and hang them on app.extensions."""
    from app.services.analytics import UsageLogger
    from app.services.background import BackgroundDispatcher
    from app.services.cache_store import TranslationCacheStore
    from app.services.resolver import BatchResolver
    from app.services.translation import build_translator

    dispatcher = BackgroundDispatcher(
        max_workers=app.config['BACKGROUND_WORKERS'],
        synchronous=app.config['BACKGROUND_TASKS_SYNC'],
    )
    atexit.register(dispatcher.shutdown)

    if not app.config['TRANSLATION_CACHE_ENABLED']:
        logger.warning("Translation cache disabled - every request goes upstream")
        cache_engine = None
    else:
        cache_engine = engine

    store = TranslationCacheStore(cache_engine, dispatcher=dispatcher)
    usage_logger = UsageLogger(engine, dispatcher=dispatcher)
    translator = build_translator(app.config)

    app.extensions['background_dispatcher'] = dispatcher
    app.extensions['translation_cache'] = store
    app.extensions['usage_logger'] = usage_logger
    app.extensions['batch_resolver'] = BatchResolver(
        store,
        translator,
        usage_logger=usage_logger,
        max_request_chars=app.config['MAX_REQUEST_CHARS'],
        max_segment_chars=app.config['MAX_SEGMENT_CHARS'],
    )
