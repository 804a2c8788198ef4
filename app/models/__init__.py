"""Database models for the translation backend."""

from .user import User
from .subscription import Subscription
from .translation_cache import TranslationCache
from .translation_usage import TranslationUsage

__all__ = ['User', 'Subscription', 'TranslationCache', 'TranslationUsage']
