"""Per-segment usage rows for cache analytics."""
from datetime import datetime
from app import db


class TranslationUsage(db.Model):
    """One row per translated segment, written in the background."""
    __tablename__ = 'translation_usage'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    segment_text = db.Column(db.Text, nullable=False)
    source_lang = db.Column(db.String(10), nullable=False)
    target_lang = db.Column(db.String(10), nullable=False)
    domain = db.Column(db.String(100), nullable=False, default='default')
    was_cache_hit = db.Column(db.Boolean, nullable=False, default=False)
    character_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.Index('ix_translation_usage_domain_created', 'domain', 'created_at'),
    )

    def __repr__(self):
        return f'<TranslationUsage {self.domain} hit={self.was_cache_hit}>'
