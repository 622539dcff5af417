"""Blog routes."""

from flask import Blueprint, request, jsonify
from sqlalchemy import or_

from wirsuchen.models import BlogPost
from .common import translated_listing

blog_bp = Blueprint('blog', __name__)


@blog_bp.route('', methods=['GET'])
def get_posts():
    """List published blog posts in the requested language."""
    try:
        query = BlogPost.query.filter(BlogPost.status == 'published')

        search = request.args.get('search')
        if search:
            pattern = f'%{search}%'
            query = query.filter(or_(BlogPost.title.ilike(pattern), BlogPost.excerpt.ilike(pattern)))
        if request.args.get('featured') in ('true', '1'):
            query = query.filter(BlogPost.featured.is_(True))

        query = query.order_by(BlogPost.featured.desc(), BlogPost.published_at.desc(), BlogPost.id.desc())
        return jsonify(translated_listing(query, 'posts', 'blog', BlogPost)), 200
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        return jsonify({'error': str(e)}), 500
