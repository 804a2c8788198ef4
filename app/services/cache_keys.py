"""Cache key derivation."""
import hashlib

from app.services.segmentation import normalize_segment

DEFAULT_DOMAIN = 'default'

# 128-bit digest; collisions would silently serve the wrong translation
_DIGEST_SIZE = 16


def get_text_hash(text: str) -> str:
    """Hex fingerprint of already-normalized text. Lone surrogates hash as-is."""
    return hashlib.blake2b(text.encode('utf-8', 'surrogatepass'), digest_size=_DIGEST_SIZE).hexdigest()


def make_backend_key(source_lang: str, target_lang: str, domain: str | None, raw_text: str) -> str:
    """Build the cache key for a segment.

    Format: ``source:target:domain:hash``. The text is normalized first, so
    whitespace differences map to the same key. The result depends only on
    the four inputs.
    """
    domain = domain or DEFAULT_DOMAIN
    text_hash = get_text_hash(normalize_segment(raw_text))
    return f'{source_lang}:{target_lang}:{domain}:{text_hash}'
