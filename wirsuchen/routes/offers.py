"""Job and deal listing routes, translated into the requested language."""

from flask import Blueprint, request, jsonify
from sqlalchemy import or_

from wirsuchen.models import Offer
from .common import translated_listing

jobs_bp = Blueprint('jobs', __name__)
deals_bp = Blueprint('deals', __name__)


def offer_query(offer_type):
    """Active offers of one type with the request's filters, featured and urgent first."""
    query = Offer.query.filter(Offer.type == offer_type, Offer.status == 'active')

    category = request.args.get('category')
    location = request.args.get('location')
    search = request.args.get('search')
    featured = request.args.get('featured')

    if category:
        query = query.filter(Offer.category == category)
    if location:
        query = query.filter(Offer.location.ilike(f'%{location}%'))
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(
            Offer.title.ilike(pattern),
            Offer.description.ilike(pattern),
            Offer.company.ilike(pattern),
        ))
    if featured in ('true', '1'):
        query = query.filter(Offer.featured.is_(True))

    return query.order_by(
        Offer.featured.desc(),
        Offer.urgent.desc(),
        Offer.published_at.desc(),
        Offer.id.desc(),
    )


@jobs_bp.route('', methods=['GET'])
def get_jobs():
    """List active jobs, translated entries first.

    Query params:
    - page, limit: pagination (default 1, 20)
    - lang or locale: target language (en, de, fr, it; default en)
    - category, location, search, featured: filters
    """
    try:
        return jsonify(translated_listing(offer_query('job'), 'jobs', 'job', Offer)), 200
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@deals_bp.route('', methods=['GET'])
def get_deals():
    """List active deals, translated entries first."""
    try:
        return jsonify(translated_listing(offer_query('deal'), 'deals', 'deal', Offer)), 200
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        return jsonify({'error': str(e)}), 500
