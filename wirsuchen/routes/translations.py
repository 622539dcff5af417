"""Translation status, bulk trigger and single-text translation routes."""

from datetime import datetime

from flask import Blueprint, request, jsonify

from wirsuchen.models import Offer
from wirsuchen.services.bulk_translation import BulkTranslator
from wirsuchen.services.language_detection import SUPPORTED_LANGUAGES
from wirsuchen.services.translation import get_translation_service

translations_bp = Blueprint('translations', __name__)
translate_bp = Blueprint('translate', __name__)


@translations_bp.route('/status', methods=['GET'])
def get_status():
    """Translation coverage.

    Query params:
    - content_id: coverage of a single item
    - detailed: 'true' adds the most recent translation rows
    """
    try:
        service = get_translation_service()
        content_id = request.args.get('content_id')
        detailed = request.args.get('detailed') == 'true'

        if content_id:
            return jsonify(service.store.item_coverage(content_id)), 200

        statistics = service.store.statistics(detailed=detailed)
        recent = statistics.pop('recent_translations', None)

        job_count = Offer.query.filter(
            Offer.type == 'job',
            Offer.status.in_(['active', 'pending']),
        ).count()
        expected = job_count * len(SUPPORTED_LANGUAGES)
        actual = statistics['by_type'].get('job', {}).get('total', 0)
        statistics['content_counts'] = {
            'jobs_in_db': job_count,
            'expected_job_translations': expected,
            'actual_job_translations': actual,
            'coverage_percentage': round(actual / expected * 100) if expected else 0,
        }

        return jsonify({
            'statistics': statistics,
            'recent_translations': recent,
            'timestamp': datetime.utcnow().isoformat(),
        }), 200
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@translations_bp.route('/bulk', methods=['POST'])
def run_bulk():
    """Translate the next batch of untranslated jobs.

    Body: {batchSize, offset, type, force}. ``force`` (or ``?force=true``)
    re-translates every language of the next rows, overwriting stored records.
    """
    try:
        data = request.get_json(silent=True) or {}
        batch_size = data.get('batchSize', 10)
        offset = data.get('offset', 0)
        content_type = data.get('type', 'job')
        force = data.get('force', request.args.get('force') == 'true')

        if not isinstance(batch_size, int) or not isinstance(offset, int) or batch_size < 1 or offset < 0:
            return jsonify({'error': 'batchSize must be a positive integer and offset non-negative'}), 400
        if not isinstance(force, bool):
            return jsonify({'error': 'force must be a boolean'}), 400

        service = get_translation_service()
        if not service.provider.is_configured():
            return jsonify({'error': 'No translation backend configured'}), 503

        translator = BulkTranslator(service, delay=service.backfill_delay)
        stats = translator.run(batch_size=batch_size, offset=offset, content_type=content_type, force=force)

        return jsonify({
            'success': True,
            'message': f"Translated {stats['translationsCreated']} item-language pairs",
            'stats': stats,
        }), 200
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@translate_bp.route('', methods=['POST'])
def translate():
    """Translate one text or a list. Body: {text|texts, targetLanguage, sourceLanguage?}."""
    try:
        data = request.get_json(silent=True) or {}
        target = data.get('targetLanguage')
        source = data.get('sourceLanguage')

        if target not in SUPPORTED_LANGUAGES:
            return jsonify({'error': f"targetLanguage must be one of {', '.join(SUPPORTED_LANGUAGES)}"}), 400

        service = get_translation_service()

        if 'texts' in data:
            texts = data['texts']
            if not isinstance(texts, list) or not all(isinstance(t, str) for t in texts):
                return jsonify({'error': 'texts must be a list of strings'}), 400
            return jsonify({'translations': service.translate_texts(texts, target, source)}), 200

        text = data.get('text')
        if not isinstance(text, str) or not text:
            return jsonify({'error': 'text or texts is required'}), 400
        return jsonify({'translation': service.translate_text(text, target, source)}), 200
    except Exception as e:
        return jsonify({'error': str(e)}), 500
