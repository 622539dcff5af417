"""Translation model for storing translated content per language."""
from datetime import datetime
from wirsuchen import db


class Translation(db.Model):
    """One translated field set for a content item in one language."""
    __tablename__ = 'translations'

    id = db.Column(db.Integer, primary_key=True)
    content_id = db.Column(db.String(255), nullable=False, index=True)
    language = db.Column(db.String(5), nullable=False, index=True)
    type = db.Column(db.String(10), nullable=False)  # 'job', 'deal', 'blog'
    translations = db.Column(db.JSON, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('content_id', 'language', 'type', name='unique_content_translation'),
    )

    def to_dict(self):
        return {
            'content_id': self.content_id,
            'language': self.language,
            'type': self.type,
            'translations': self.translations,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
