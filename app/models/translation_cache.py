"""Translation cache model for storing translated segments."""
from datetime import datetime
from app import db


class TranslationCache(db.Model):
    """One cached translation, scoped to a domain.

    Rows are written once and never overwritten; only ``hit_count`` changes
    after insertion.
    """
    __tablename__ = 'translation_cache'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(255), nullable=False, index=True)
    domain = db.Column(db.String(100), nullable=False, default='default')
    source_lang = db.Column(db.String(10), nullable=False)
    target_lang = db.Column(db.String(10), nullable=False)
    original_text = db.Column(db.Text, nullable=False)  # Normalized text
    translated_text = db.Column(db.Text, nullable=False)
    hit_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('key', 'domain', name='unique_translation_key_domain'),
    )

    def to_dict(self):
        return {
            'key': self.key,
            'domain': self.domain,
            'source_lang': self.source_lang,
            'target_lang': self.target_lang,
            'original_text': self.original_text,
            'translated_text': self.translated_text,
            'hit_count': self.hit_count,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<TranslationCache {self.key} [{self.domain}]>'
