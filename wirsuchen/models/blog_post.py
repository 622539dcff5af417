"""Blog post model."""

from datetime import datetime

from sqlalchemy import String, cast, literal
from sqlalchemy.ext.hybrid import hybrid_property

from wirsuchen import db


class BlogPost(db.Model):
    __tablename__ = 'blog_posts'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    excerpt = db.Column(db.Text, nullable=True)
    content = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), default='published', nullable=False, index=True)  # 'draft', 'published'
    featured = db.Column(db.Boolean, default=False, nullable=False)
    published_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    source = 'db'
    type = 'blog'

    @hybrid_property
    def content_id(self):
        return f'blog-db-{self.id}'

    @content_id.expression
    def content_id(cls):
        return literal('blog-db-') + cast(cls.id, String)

    def translatable_fields(self):
        return {
            'title': self.title or '',
            'excerpt': self.excerpt or '',
            'content': self.content or '',
        }

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'excerpt': self.excerpt,
            'content': self.content,
            'status': self.status,
            'featured': self.featured,
            'published_at': self.published_at.isoformat() if self.published_at else None,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }

    def __repr__(self):
        return f'<BlogPost {self.id}: {self.title}>'
