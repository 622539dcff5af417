"""Shared helpers for the translated listing endpoints."""

from flask import request

from wirsuchen.services.language_detection import normalize_language
from wirsuchen.services.listing_merger import ListingMerger
from wirsuchen.services.translation import get_translation_service

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def listing_args():
    """Read page, limit and language from the query string.

    Raises ValueError for a page or limit below 1.
    """
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', DEFAULT_LIMIT, type=int)
    if page is None or limit is None or page < 1 or limit < 1:
        raise ValueError('page and limit must be positive integers')
    language = normalize_language(request.args.get('lang') or request.args.get('locale'))
    return page, min(limit, MAX_LIMIT), language


def translated_listing(query, key, content_type, model):
    """Run the listing merger and shape the JSON body for a listing endpoint."""
    page, limit, language = listing_args()
    merger = ListingMerger(get_translation_service())
    result = merger.fetch_page(query, page, limit, language, content_type, model=model)

    return {
        key: result['items'],
        'pagination': {
            'page': result['page'],
            'limit': result['limit'],
            'total': result['total'],
            'pages': result['pages'],
        },
        'meta': {
            'translated': result['translated'],
            'untranslated': result['untranslated'],
            'language': language,
        },
    }
