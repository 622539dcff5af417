"""Database models for the WIRsuchen application."""

from .offer import Offer
from .blog_post import BlogPost
from .translation import Translation

__all__ = ['Offer', 'BlogPost', 'Translation']
