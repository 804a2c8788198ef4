"""Shared utilities for the translation backend."""

from app.utils.auth import generate_token, token_required

__all__ = [
    'generate_token',
    'token_required',
]
