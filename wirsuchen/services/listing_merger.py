"""Translated-first pagination over a partially translated listing.

A listing is split into two virtual partitions: rows that already have a
stored translation into the requested language, and rows that do not. The
page window is computed against the combined list (translated rows first,
each partition keeping the caller's ordering) and only the rows inside the
window are fetched.
"""
import logging
import math

from wirsuchen.services.content import item_from_model
from wirsuchen.services.translation_store import TranslationStore

logger = logging.getLogger(__name__)


def plan_page(translated_count: int, untranslated_count: int, page: int, limit: int) -> dict:
    """Map a logical page onto physical ranges of the two partitions.

    Returns ``{'translated': (offset, count) | None, 'untranslated': (offset, count) | None}``
    where offsets are relative to the start of each partition.
    """
    if page < 1 or limit < 1:
        raise ValueError('page and limit must be positive integers')

    start = (page - 1) * limit
    end = start + limit
    total = translated_count + untranslated_count

    plan = {'translated': None, 'untranslated': None}

    if start < translated_count:
        plan['translated'] = (start, min(end, translated_count) - start)

    segment_start = max(start, translated_count)
    segment_end = min(end, total)
    if segment_start < segment_end:
        plan['untranslated'] = (segment_start - translated_count, segment_end - segment_start)

    return plan


class ListingMerger:

    def __init__(self, service, store=None):
        self.service = service
        self.store = store or service.store or TranslationStore()

    def fetch_page(self, query, page: int, limit: int, language: str, content_type: str, model=None) -> dict:
        """Fetch one page of ``query`` with translated rows first.

        ``query`` carries the caller's filters and ordering. The returned items
        are dicts with translated fields applied where available.
        """
        if page < 1 or limit < 1:
            raise ValueError('page and limit must be positive integers')

        model = model or query.column_descriptions[0]['entity']
        translated_ids = self.store.translated_ids_query(language, content_type)

        translated_query = query.filter(model.content_id.in_(translated_ids))
        untranslated_query = query.filter(~model.content_id.in_(translated_ids))

        translated_count = translated_query.order_by(None).count()
        untranslated_count = untranslated_query.order_by(None).count()
        total = translated_count + untranslated_count

        plan = plan_page(translated_count, untranslated_count, page, limit)

        translated_rows = []
        if plan['translated']:
            offset, count = plan['translated']
            translated_rows = translated_query.offset(offset).limit(count).all()

        untranslated_rows = []
        if plan['untranslated']:
            offset, count = plan['untranslated']
            untranslated_rows = untranslated_query.offset(offset).limit(count).all()

        items = self._serialize(translated_rows, language, stored_only=True)
        items += self._serialize(untranslated_rows, language, stored_only=False)

        logger.debug(
            f"Listing page {page} ({language}): {len(translated_rows)} translated, "
            f"{len(untranslated_rows)} untranslated of {total}"
        )

        return {
            'items': items,
            'total': total,
            'translated': translated_count,
            'untranslated': untranslated_count,
            'page': page,
            'limit': limit,
            'pages': math.ceil(total / limit) if total else 0,
        }

    def _serialize(self, rows, language, stored_only):
        if not rows:
            return []

        content_items = [item_from_model(row) for row in rows]
        if stored_only:
            translated = self.service.apply_stored_translations(content_items, language)
        else:
            translated = self.service.translate_items(content_items, language)
            self.service.schedule_backfill(content_items, language)

        items = []
        for row, item, fields in zip(rows, content_items, translated):
            data = row.to_dict()
            data.update(fields)
            data['content_id'] = item.content_id
            items.append(data)
        return items
