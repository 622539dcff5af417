"""Offer model for job postings and affiliate deals."""

from datetime import datetime

from sqlalchemy import String, cast
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import validates

from wirsuchen import db


class Offer(db.Model):
    """A job posting or deal, either created locally or pulled from an external feed."""

    __tablename__ = 'offers'

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(10), nullable=False, index=True)  # 'job', 'deal'
    title = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    company = db.Column(db.String(255), nullable=True)
    location = db.Column(db.String(255), nullable=True)
    category = db.Column(db.String(50), nullable=True, index=True)
    external_id = db.Column(db.String(255), nullable=True, index=True)
    source = db.Column(db.String(50), default='db', nullable=False)  # 'db', 'adzuna', 'rapidapi', 'awin', ...
    status = db.Column(db.String(20), default='active', nullable=False, index=True)  # 'active', 'pending', 'expired'
    featured = db.Column(db.Boolean, default=False, nullable=False)
    urgent = db.Column(db.Boolean, default=False, nullable=False)
    published_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @validates('source')
    def normalize_source(self, key, value):
        # Content ids split on '-', so sources must not contain one
        return (value or 'db').strip().lower().replace('-', '_') or 'db'

    @hybrid_property
    def content_id(self):
        """Identifier used for translation records, e.g. job-adzuna-42."""
        return f'{self.type}-{self.source or "db"}-{self.id}'

    @content_id.expression
    def content_id(cls):
        return cls.type + '-' + cls.source + '-' + cast(cls.id, String)

    def translatable_fields(self):
        return {
            'title': self.title or '',
            'description': self.description or '',
        }

    def to_dict(self):
        """Convert offer to dictionary."""
        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'description': self.description,
            'company': self.company,
            'location': self.location,
            'category': self.category,
            'external_id': self.external_id,
            'source': self.source,
            'status': self.status,
            'featured': self.featured,
            'urgent': self.urgent,
            'published_at': self.published_at.isoformat() if self.published_at else None,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }

    def __repr__(self):
        return f'<Offer {self.type} {self.id}: {self.title}>'
