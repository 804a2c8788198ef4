"""Batch translation resolver.

Splits a batch of segments into cache hits and misses, sends only the
misses upstream in one call, writes the new translations back, and returns
results in request order. Any validation or upstream failure aborts the
whole batch; partial results are never returned.
"""
import logging
from dataclasses import dataclass

from app.errors import (
    InternalError,
    InvalidSegment,
    RequestTooLarge,
    TranslationServiceError,
    UpstreamLengthMismatch,
    UpstreamShapeError,
)
from app.services.cache_keys import DEFAULT_DOMAIN, make_backend_key
from app.services.cache_store import TranslationEntry
from app.services.segmentation import (
    DEFAULT_MAX_SEGMENT_LENGTH,
    normalize_segment,
    validate_segment,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUEST_CHARS = 8000


@dataclass(frozen=True)
class ResolvedBatch:
    translations: list
    hit_statuses: list
    domain: str

    @property
    def hits(self) -> int:
        return sum(1 for hit in self.hit_statuses if hit)

    @property
    def misses(self) -> int:
        return len(self.hit_statuses) - self.hits


class BatchResolver:
    """Resolves translation batches against the cache and the upstream provider.

    Collaborators are injected so the resolver can run against a fake store
    and translator in tests:

    - ``cache_store``: ``bulk_lookup(keys, domain)`` / ``bulk_insert(entries)``
    - ``translator``: ``translate_batch(texts, source_lang, target_lang)``
    - ``usage_logger`` (optional): ``log_usage(...)``, fire-and-forget
    """

    def __init__(self, cache_store, translator, usage_logger=None,
                 max_request_chars=DEFAULT_MAX_REQUEST_CHARS,
                 max_segment_chars=DEFAULT_MAX_SEGMENT_LENGTH):
        self.cache_store = cache_store
        self.translator = translator
        self.usage_logger = usage_logger
        self.max_request_chars = max_request_chars
        self.max_segment_chars = max_segment_chars

    def resolve(self, source_lang, target_lang, segments, domain=None, user_id=None) -> ResolvedBatch:
        """Translate ``segments`` so that ``translations[i]`` answers ``segments[i]``.

        Raises:
            RequestTooLarge: summed normalized length over ``max_request_chars``
            InvalidSegment: first segment that fails validation
            UpstreamError: the provider call failed (nothing is cached)
            InternalError: the translator raised something unexpected
        """
        domain = domain or DEFAULT_DOMAIN
        segments = list(segments)

        total_chars = sum(len(normalize_segment(segment)) for segment in segments)
        if total_chars > self.max_request_chars:
            raise RequestTooLarge(total_chars, self.max_request_chars)

        normalized = []
        for index, segment in enumerate(segments):
            validation = validate_segment(segment, self.max_segment_chars)
            if not validation.valid:
                raise InvalidSegment(index, validation.message, validation.error)
            normalized.append(validation.normalized)

        keys = [make_backend_key(source_lang, target_lang, domain, text) for text in normalized]
        cached = self._lookup(list(dict.fromkeys(keys)), domain)

        translations = [None] * len(segments)
        hit_statuses = [False] * len(segments)
        misses = []
        for index, key in enumerate(keys):
            if key in cached:
                translations[index] = cached[key]
                hit_statuses[index] = True
            else:
                misses.append(index)

        logger.info(
            f"[{domain}] Cache: {len(segments) - len(misses)} hits, "
            f"{len(misses)} misses ({len(segments)} total)"
        )

        if misses:
            miss_texts = [normalized[index] for index in misses]
            try:
                results = self.translator.translate_batch(miss_texts, source_lang, target_lang)
            except TranslationServiceError:
                raise
            except Exception as e:
                raise InternalError(f"Translator failed unexpectedly: {e}") from e
            if not isinstance(results, list):
                raise UpstreamShapeError('Unexpected upstream response shape')
            if len(results) != len(miss_texts):
                raise UpstreamLengthMismatch(len(miss_texts), len(results))

            new_entries = {}
            for index, translated in zip(misses, results):
                translations[index] = translated
                key = keys[index]
                if key not in new_entries:
                    new_entries[key] = TranslationEntry(
                        key=key,
                        source_lang=source_lang,
                        target_lang=target_lang,
                        domain=domain,
                        original_text=normalized[index],
                        translated_text=translated,
                    )

            self._store(list(new_entries.values()))

        self._log_usage(user_id, segments, hit_statuses, domain, source_lang, target_lang)

        return ResolvedBatch(translations, hit_statuses, domain)

    def _lookup(self, keys, domain):
        try:
            return self.cache_store.bulk_lookup(keys, domain=domain)
        except Exception as e:
            # Treat the whole batch as misses
            logger.error(f"Cache lookup error: {e}")
            return {}

    def _store(self, entries):
        try:
            self.cache_store.bulk_insert(entries)
        except Exception as e:
            # Next request for these keys goes upstream again
            logger.error(f"Cache storage error: {e}")

    def _log_usage(self, user_id, segments, hit_statuses, domain, source_lang, target_lang):
        if self.usage_logger is None:
            return
        try:
            self.usage_logger.log_usage(user_id, segments, hit_statuses, domain, source_lang, target_lang)
        except Exception as e:
            logger.error(f"Analytics logging error (non-blocking): {e}")
