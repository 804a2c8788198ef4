"""Persistent translation cache backed by the relational database.

The cache is an optimization, not a correctness dependency: every failure
in here is logged and degrades to "miss" (lookups) or "not stored"
(inserts). Callers never see a database error from this module.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.errors import CacheUnavailable
from app.models import TranslationCache

logger = logging.getLogger(__name__)

translation_table = TranslationCache.__table__

_CONFLICT_DIALECTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


@dataclass(frozen=True)
class TranslationEntry:
    """A translation about to be written to the cache."""
    key: str
    source_lang: str
    target_lang: str
    domain: str
    original_text: str
    translated_text: str
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_row(self):
        return {
            'key': self.key,
            'domain': self.domain,
            'source_lang': self.source_lang,
            'target_lang': self.target_lang,
            'original_text': self.original_text,
            'translated_text': self.translated_text,
            'hit_count': 0,
            'created_at': self.created_at,
        }


class TranslationCacheStore:
    """Bulk lookup and insert-if-absent over the ``translation_cache`` table.

    Built without an engine the store is disabled and behaves as an empty
    cache that discards writes.
    """

    def __init__(self, engine=None, dispatcher=None):
        self.engine = engine
        self.dispatcher = dispatcher

    @property
    def enabled(self) -> bool:
        return self.engine is not None

    def check_connection(self):
        """Raise CacheUnavailable unless the database answers ``SELECT 1``."""
        if not self.enabled:
            raise CacheUnavailable('Translation cache is not configured')
        try:
            with self.engine.connect() as conn:
                conn.execute(text('SELECT 1'))
        except SQLAlchemyError as e:
            raise CacheUnavailable(str(e)) from e

    def bulk_lookup(self, keys, domain=None) -> dict[str, str]:
        """Return ``{key: translated_text}`` for the keys already cached."""
        if not keys or not self.enabled:
            return {}

        unique_keys = list(dict.fromkeys(keys))
        query = select(translation_table.c.key, translation_table.c.translated_text).where(
            translation_table.c.key.in_(unique_keys)
        )
        if domain is not None:
            query = query.where(translation_table.c.domain == domain)

        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as e:
            logger.error(f"Cache lookup error: {e}")
            return {}

        found = {row.key: row.translated_text for row in rows}
        if found:
            self._schedule_hit_increment(list(found), domain)
        return found

    def bulk_insert(self, entries):
        """Insert entries, silently skipping any ``(key, domain)`` already present."""
        if not entries or not self.enabled:
            return

        rows = [entry.to_row() for entry in entries]
        try:
            insert_fn = _CONFLICT_DIALECTS.get(self.engine.dialect.name)
            if insert_fn is not None:
                stmt = insert_fn(translation_table).values(rows).on_conflict_do_nothing(
                    index_elements=['key', 'domain']
                )
                with self.engine.begin() as conn:
                    conn.execute(stmt)
            else:
                self._insert_rows_individually(rows)
            logger.info(f"Inserted up to {len(rows)} new translations into cache")
        except SQLAlchemyError as e:
            logger.error(f"Cache storage error: {e}")

    def _insert_rows_individually(self, rows):
        for row in rows:
            try:
                with self.engine.begin() as conn:
                    conn.execute(translation_table.insert().values(**row))
            except IntegrityError:
                pass  # Already cached, first writer wins

    def _schedule_hit_increment(self, keys, domain):
        if self.dispatcher is None:
            self._increment_hit_counts(keys, domain)
            return
        self.dispatcher.submit(
            self._increment_hit_counts, keys, domain,
            description='Cache hit-count update',
        )

    def _increment_hit_counts(self, keys, domain):
        stmt = (
            update(translation_table)
            .where(translation_table.c.key.in_(keys))
            .values(hit_count=translation_table.c.hit_count + 1)
        )
        if domain is not None:
            stmt = stmt.where(translation_table.c.domain == domain)

        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as e:
            logger.warning(f"Cache hit-count update failed (non-fatal): {e}")
