"""Routes package for the translation backend."""


def register_routes(app):
    """Register all route blueprints with the application."""
    from .auth import auth_bp
    from .billing import billing_bp
    from .translate import translate_bp
    from .analytics import analytics_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(billing_bp)
    app.register_blueprint(translate_bp)
    app.register_blueprint(analytics_bp, url_prefix='/analytics')
