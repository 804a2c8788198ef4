"""Auth routes package.

- core: signup, login and the current-user endpoint
"""

from flask import Blueprint

auth_bp = Blueprint('auth', __name__)

# Import route modules (registers routes on auth_bp)
from app.routes.auth import core  # noqa: E402,F401
