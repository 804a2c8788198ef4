"""Translation usage analytics.

Usage rows are written in the background after a batch resolves; a failed
write is logged and never reaches the translate request. The read helpers
back the analytics endpoints.
"""
import logging
from datetime import datetime, timedelta

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.models import TranslationUsage

logger = logging.getLogger(__name__)

usage_table = TranslationUsage.__table__


class UsageLogger:
    """Records one usage row per translated segment."""

    def __init__(self, engine=None, dispatcher=None):
        self.engine = engine
        self.dispatcher = dispatcher

    def log_usage(self, user_id, segments, hit_statuses, domain, source_lang, target_lang):
        """Queue usage rows for a resolved batch. Never raises, never blocks on the database."""
        if self.engine is None:
            return

        if not isinstance(segments, list) or not segments:
            return

        if not isinstance(hit_statuses, list) or len(hit_statuses) != len(segments):
            logger.warning("Segment count mismatch in analytics logging")
            return

        now = datetime.utcnow()
        rows = [
            {
                'user_id': user_id,
                'segment_text': segment,
                'source_lang': source_lang,
                'target_lang': target_lang,
                'domain': domain,
                'was_cache_hit': bool(hit),
                'character_count': len(segment),
                'created_at': now,
            }
            for segment, hit in zip(segments, hit_statuses)
        ]

        if self.dispatcher is None:
            self._write(rows)
        else:
            self.dispatcher.submit(self._write, rows, description='Analytics logging')

    def _write(self, rows):
        try:
            with self.engine.begin() as conn:
                conn.execute(usage_table.insert(), rows)
        except SQLAlchemyError as e:
            logger.error(f"Analytics logging error (non-blocking): {e}")


def get_cache_hit_rate_by_domain(domain: str, days_back: int = 7) -> dict | None:
    """Hit statistics for a domain over the last ``days_back`` days."""
    since = datetime.utcnow() - timedelta(days=days_back)
    hit = case((TranslationUsage.was_cache_hit.is_(True), 1), else_=0)

    try:
        total, hits = db.session.query(
            func.count(TranslationUsage.id),
            func.coalesce(func.sum(hit), 0),
        ).filter(
            TranslationUsage.domain == domain,
            TranslationUsage.created_at > since,
        ).one()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching cache hit rate: {e}")
        db.session.rollback()
        return None

    total = int(total or 0)
    hits = int(hits or 0)
    return {
        'total_requests': total,
        'cache_hits': hits,
        'hit_rate': round(100.0 * hits / total, 2) if total else 0.0,
    }


def get_top_segments_by_domain(domain: str, limit: int = 20) -> list:
    """Most frequently requested segments for a domain."""
    hit = case((TranslationUsage.was_cache_hit.is_(True), 1), else_=0)
    usage_count = func.count(TranslationUsage.id).label('usage_count')

    try:
        rows = db.session.query(
            TranslationUsage.segment_text,
            TranslationUsage.source_lang,
            TranslationUsage.target_lang,
            usage_count,
            func.sum(hit).label('cache_hit_count'),
        ).filter(
            TranslationUsage.domain == domain,
        ).group_by(
            TranslationUsage.segment_text,
            TranslationUsage.source_lang,
            TranslationUsage.target_lang,
        ).order_by(
            usage_count.desc(),
        ).limit(limit).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching top segments: {e}")
        db.session.rollback()
        return []

    return [
        {
            'segment_text': row.segment_text,
            'source_lang': row.source_lang,
            'target_lang': row.target_lang,
            'usage_count': int(row.usage_count),
            'cache_hit_count': int(row.cache_hit_count or 0),
        }
        for row in rows
    ]
