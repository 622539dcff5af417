"""Bulk translation of active job/deal offers into all supported languages.

Designed for repeated invocation: each run looks at one window of offers
(``offset`` .. ``offset + fetch_limit``), translates at most ``batch_size`` of
the items still missing a language, and reports where the next run should
start. Duplicate postings are translated once and the records are copied to
every duplicate in the window.

With ``force`` the coverage check is skipped: the window shrinks to
``batch_size`` rows, every language of every row is translated again and
written over the stored records, and the next run starts right after the
window.
"""
import logging
import time

from wirsuchen.models import Offer
from wirsuchen.services.content import group_duplicates, item_from_model
from wirsuchen.services.errors import ContentIdMalformed, TranslationError
from wirsuchen.services.language_detection import SUPPORTED_LANGUAGES

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 100
DEFAULT_FETCH_LIMIT = 500


class BulkTranslator:

    def __init__(self, service, delay=0.5, sleep=time.sleep):
        self.service = service
        self.provider = service.provider
        self.store = service.store
        self.delay = delay
        self._sleep = sleep

    def _active(self, content_type):
        return Offer.query.filter(
            Offer.type == content_type,
            Offer.status == 'active',
        )

    def _fetch_window(self, content_type, offset, fetch_limit):
        return self._active(content_type).order_by(Offer.id).offset(offset).limit(fetch_limit).all()

    def _groups(self, rows):
        """Content items grouped by dedupe key; the first item of a group is translated."""
        groups = []
        for rows_in_group in group_duplicates(rows):
            items = []
            for row in rows_in_group:
                try:
                    items.append(item_from_model(row))
                except ContentIdMalformed as e:
                    logger.warning(f"Skipping offer without usable id: {e}")
            if items:
                groups.append(items)
        return groups

    def _remaining(self, content_type, languages) -> int:
        """Active offers of ``content_type`` missing at least one of ``languages``."""
        covered = self.store.covered_ids_query(content_type, languages)
        return self._active(content_type).filter(~Offer.content_id.in_(covered)).count()

    def run(self, batch_size=10, offset=0, fetch_limit=DEFAULT_FETCH_LIMIT, content_type='job',
            languages=None, force=False) -> dict:
        if content_type not in ('job', 'deal'):
            raise ValueError(f"Bulk translation supports jobs and deals, not '{content_type}'")
        batch_size = max(1, min(int(batch_size), MAX_BATCH_SIZE))
        offset = max(0, int(offset))
        languages = list(languages or SUPPORTED_LANGUAGES)
        if force:
            fetch_limit = batch_size

        logger.info(f"Starting bulk translation: batch={batch_size}, offset={offset}, "
                    f"languages={','.join(languages)}, force={force}")

        rows = self._fetch_window(content_type, offset, fetch_limit)
        groups = self._groups(rows)
        coverage = self.store.languages_for_batch(
            [item.content_id for group in groups for item in group], content_type
        )

        targets = {}
        for group in groups:
            for item in group:
                done = set() if force else coverage.get(item.content_id, set())
                targets[item.content_id] = [lang for lang in languages if lang not in done]
        untranslated = [group for group in groups if any(targets[item.content_id] for item in group)]
        batch = untranslated[:batch_size]
        logger.info(f"Found {len(untranslated)} {content_type}s to translate out of {len(groups)}")

        created = 0
        errors = 0
        completed = 0
        for position, group in enumerate(batch):
            if position and self.delay:
                self._sleep(self.delay)
            group_created, group_errors = self._translate_group(group, targets, coverage, force)
            created += group_created
            errors += group_errors
            if not group_errors:
                completed += 1

        total = self._active(content_type).count()
        if force:
            next_offset = offset + len(rows)
            remaining = max(total - next_offset, 0)
        else:
            window_remaining = len(untranslated) - completed
            next_offset = offset if window_remaining > 0 else offset + fetch_limit
            remaining = self._remaining(content_type, languages)

        stats = {
            'processedJobs': len(batch),
            'translationsCreated': created,
            'errors': errors,
            'remainingUntranslated': remaining,
            'nextOffset': next_offset,
            'translationsByLanguage': self.store.counts_by_language(content_type),
            'totalJobs': total,
        }
        logger.info(f"Bulk translation done: {created} created, {errors} errors, {remaining} remaining")
        return stats

    def _translate_group(self, group, targets, coverage, force):
        """Write the missing records for a group of duplicates. Returns (created, errors)."""
        leader = group[0]
        needed = list(dict.fromkeys(
            lang for item in group for lang in targets[item.content_id]
        ))
        reusable = set() if force else coverage.get(leader.content_id, set())
        records, errors = self._records(leader, needed, reusable)

        created = 0
        for item in group:
            for lang in targets[item.content_id]:
                record = records.get(lang)
                if record is None:
                    continue
                try:
                    self.store.upsert(item.content_id, lang, item.content_type, record)
                    created += 1
                except TranslationError as e:
                    logger.error(f"Error saving translation for {item.content_id}/{lang}: {e}")
                    errors += 1
        return created, errors

    def _records(self, item, languages, reusable):
        """Translated fields of ``item`` per language. Returns ({lang: fields}, errors)."""
        fields = item.translatable_fields()
        if not fields or not languages:
            return {}, 0

        records = {}
        for lang in languages:
            if lang in reusable:
                stored = self.store.get(item.content_id, lang, item.content_type)
                if stored:
                    records[lang] = stored

        pending = [lang for lang in languages if lang not in records]
        if not pending:
            return records, 0

        translations = {}
        try:
            structured = self.provider.translate_structured(
                fields.get('title', ''), fields.get('description', ''), item.content_type
            )
            translations = {lang: structured[lang] for lang in pending if lang in structured}
        except TranslationError as e:
            logger.info(f"Structured translation unavailable for {item.content_id}, "
                        f"translating per language: {e}")

        source = self.service.source_language(item)
        errors = 0
        for lang in pending:
            record = translations.get(lang)
            if record is None:
                if lang == source:
                    record = fields
                else:
                    try:
                        values = self.provider.translate(list(fields.values()), lang, source)
                    except TranslationError as e:
                        logger.warning(f"Translation failed for {item.content_id}/{lang}: {e}")
                        errors += 1
                        continue
                    record = dict(zip(fields.keys(), values))
            # Only keep fields the item actually has
            records[lang] = {name: value for name, value in record.items() if name in fields}
        return records, errors
