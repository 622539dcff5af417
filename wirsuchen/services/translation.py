"""Translation service: cache, store and provider behind one best-effort API.

For every (content item, target language) the service checks, in order:
1. the translation cache (memory, then Redis when configured)
2. the ``translations`` table
3. the translation provider

A provider failure never reaches the caller: the original text is served
instead. Store writes happen off the request path and only log on failure.

Usage:
    service = get_translation_service()
    fields = service.translate_item(item, 'de')
    service.schedule_backfill(untranslated_items, 'de')
"""
import logging
import time

from flask import current_app

from wirsuchen.services.background import BackgroundTaskRunner
from wirsuchen.services.content import ContentItem
from wirsuchen.services.errors import TranslationError
from wirsuchen.services.language_detection import (
    LanguageDetector,
    SUPPORTED_LANGUAGES,
    normalize_language,
)
from wirsuchen.services.redis_client import get_redis
from wirsuchen.services.translation_cache import (
    MemoryTranslationCache,
    PersistedTranslationCache,
    TieredTranslationCache,
)
from wirsuchen.services.translation_providers import build_provider
from wirsuchen.services.translation_store import TranslationStore

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 5
SYNC_MAX_RETRIES = 1


class TranslationService:

    def __init__(self, provider, store=None, cache=None, detector=None, runner=None,
                 backfill_limit=10, backfill_delay=0.5, chunk_size=DEFAULT_CHUNK_SIZE,
                 sync_max_retries=SYNC_MAX_RETRIES, sleep=time.sleep):
        self.provider = provider
        self.store = store or TranslationStore()
        self.cache = cache if cache is not None else provider.cache
        self.detector = detector or LanguageDetector()
        self.runner = runner or BackgroundTaskRunner(inline=True)
        self.backfill_limit = backfill_limit
        self.backfill_delay = backfill_delay
        self.chunk_size = chunk_size
        # Attempts per provider call while a request is waiting; backfill uses the provider default
        self.sync_max_retries = sync_max_retries
        self._sleep = sleep

    def source_language(self, item: ContentItem) -> str:
        return self.detector.detect(' '.join(item.translatable_fields().values()))

    # ------------------------------------------------------------------
    # Synchronous best-effort path
    # ------------------------------------------------------------------

    def translate_item(self, item: ContentItem, language: str) -> dict:
        """Return the item's fields in ``language``, or the originals on failure."""
        return self.translate_items([item], language)[0]

    def translate_items(self, items: list, language: str) -> list:
        """Translate a small page of items. Output order matches ``items``."""
        language = normalize_language(language)
        results = [dict(item.fields) for item in items]

        # Cache check: every non-empty field must hit
        remaining = []
        for index, item in enumerate(items):
            texts = item.translatable_fields()
            if not texts or self.source_language(item) == language:
                continue
            cached = {name: self.cache.get(text, language) for name, text in texts.items()}
            if all(value is not None for value in cached.values()):
                results[index].update(cached)
                continue
            remaining.append(index)

        if not remaining:
            return results

        # Store check: one lookup per content type
        stored = self._stored_for([items[index] for index in remaining], language)

        batch = []  # (item index, field, text)
        for index in remaining:
            item = items[index]
            fields = stored.get(item.content_id)
            if fields:
                results[index].update({name: value for name, value in fields.items() if value})
                self._populate_cache(item, fields, language)
                continue
            for name, text in item.translatable_fields().items():
                batch.append((index, name, text))

        # Provider: fixed-size chunks bound payload size per call.
        # After the first failure the rest of the page is served untranslated.
        failed = set()
        for start in range(0, len(batch), self.chunk_size):
            chunk = batch[start:start + self.chunk_size]
            try:
                translations = self.provider.translate(
                    [text for _, _, text in chunk], language, max_retries=self.sync_max_retries
                )
            except TranslationError as e:
                logger.warning(f"Translation to {language} failed, serving original text: {e}")
                failed.update(index for index, _, _ in batch[start:])
                break
            except Exception as e:
                logger.error(f"Unexpected translation error, serving original text: {e}", exc_info=True)
                failed.update(index for index, _, _ in batch[start:])
                break
            for (index, name, _), translation in zip(chunk, translations):
                results[index][name] = translation

        translated = sorted({index for index, _, _ in batch} - failed)
        for index in translated:
            item = items[index]
            fields = {name: results[index][name] for name in item.translatable_fields()}
            self._persist_later(item, language, fields)

        return results

    def apply_stored_translations(self, items: list, language: str) -> list:
        """Fast path: stored translations only, no provider calls."""
        language = normalize_language(language)
        stored = self._stored_for(items, language)
        results = []
        for item in items:
            fields = dict(item.fields)
            translation = stored.get(item.content_id)
            if translation:
                fields.update({name: value for name, value in translation.items() if value})
            results.append(fields)
        return results

    def translate_text(self, text: str, target_lang: str, source_lang: str | None = None) -> str:
        """Translate one string; returns the input on failure."""
        return self.translate_texts([text], target_lang, source_lang)[0]

    def translate_texts(self, texts: list, target_lang: str, source_lang: str | None = None) -> list:
        target_lang = normalize_language(target_lang)
        source_lang = normalize_language(source_lang, default=None) if source_lang else None
        try:
            return self.provider.translate(
                list(texts), target_lang, source_lang, max_retries=self.sync_max_retries
            )
        except TranslationError as e:
            logger.warning(f"Text translation to {target_lang} failed, returning original: {e}")
            return list(texts)

    # ------------------------------------------------------------------
    # Asynchronous backfill
    # ------------------------------------------------------------------

    def schedule_backfill(self, items: list, language: str):
        """Queue background translation for up to ``backfill_limit`` items.

        Returns the task future, or None when nothing was queued.
        """
        language = normalize_language(language)
        items = list(items)[:self.backfill_limit]
        if not items:
            return None
        if not self.provider.is_configured():
            logger.debug("No translation backend configured, skipping backfill")
            return None
        return self.runner.submit(self.backfill, items, language, name=f'backfill-{language}')

    def backfill(self, items: list, language: str) -> int:
        """Translate and store items lacking a translation. Returns the number stored."""
        stored = self._stored_for(items, language)
        created = 0
        calls = 0

        for item in items:
            if item.content_id in stored:
                continue
            texts = item.translatable_fields()
            if not texts:
                continue

            source = self.source_language(item)
            if source == language:
                # Content already in the requested language: the original is the translation
                if self._persist_now(item, language, texts):
                    created += 1
                continue

            if calls and self.backfill_delay:
                self._sleep(self.backfill_delay)
            calls += 1

            try:
                translations = self.provider.translate(list(texts.values()), language, source)
            except TranslationError as e:
                # Retries are spent; the rest of the items wait for a later backfill
                logger.warning(f"Backfill of {item.content_id} to {language} failed, stopping: {e}")
                break

            if self._persist_now(item, language, dict(zip(texts.keys(), translations))):
                created += 1

        logger.info(f"Backfill to {language}: stored {created}/{len(items)} translations")
        return created

    # ------------------------------------------------------------------
    # All-language helpers
    # ------------------------------------------------------------------

    def ensure_translated(self, item: ContentItem, languages=None) -> list:
        """Translate and store each missing language. Returns the languages created."""
        languages = [normalize_language(lang) for lang in (languages or SUPPORTED_LANGUAGES)]
        existing = self.store.languages_for(item.content_id, item.content_type)
        texts = item.translatable_fields()
        if not texts:
            return []

        source = self.source_language(item)
        created = []
        for language in languages:
            if language in existing:
                continue
            if language == source:
                fields = texts
            else:
                try:
                    fields = dict(zip(texts.keys(), self.provider.translate(list(texts.values()), language, source)))
                except TranslationError as e:
                    logger.warning(f"Could not translate {item.content_id} to {language}: {e}")
                    continue
                if self.backfill_delay:
                    self._sleep(self.backfill_delay)
            if self._persist_now(item, language, fields):
                created.append(language)
        return created

    def auto_translate_all_languages(self, item: ContentItem) -> dict:
        """Store the original under its detected language and translate into the other three."""
        source = self.source_language(item)
        logger.info(f"[Translation] Detected source language: {source} for {item.content_id}")
        languages = [source] + [lang for lang in SUPPORTED_LANGUAGES if lang != source]
        created = self.ensure_translated(item, languages)
        existing = self.store.languages_for(item.content_id, item.content_type)
        return {
            'success': bool(existing),
            'source_language': source,
            'translated_languages': [lang for lang in SUPPORTED_LANGUAGES if lang in existing],
            'created_languages': created,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _stored_for(self, items: list, language: str) -> dict:
        by_type = {}
        for item in items:
            by_type.setdefault(item.content_type, []).append(item.content_id)
        stored = {}
        for content_type, content_ids in by_type.items():
            stored.update(self.store.get_batch(content_ids, language, content_type))
        return stored

    def _populate_cache(self, item: ContentItem, fields: dict, language: str):
        for name, text in item.translatable_fields().items():
            value = fields.get(name)
            if value:
                self.cache.set(text, language, value)

    def _persist_now(self, item: ContentItem, language: str, fields: dict) -> bool:
        try:
            self.store.upsert(item.content_id, language, item.content_type, fields)
            return True
        except TranslationError as e:
            logger.error(f"Failed to store translation {item.content_id}/{language}: {e}")
            return False

    def _persist_later(self, item: ContentItem, language: str, fields: dict):
        future = self.runner.submit(self._persist_now, item, language, fields, name=f'store-{item.content_id}')
        if future is None:
            logger.warning(f"Dropped store write for {item.content_id}/{language}, queue full")


def build_translation_service(app) -> TranslationService:
    """Wire cache, provider, store and background runner from app config."""
    config = app.config

    persisted = None
    redis_client = get_redis(config.get('REDIS_URL')) if config.get('REDIS_URL') else None
    if redis_client is not None:
        persisted = PersistedTranslationCache(redis_client, ttl=config.get('TRANSLATION_CACHE_TTL', 86400))
    cache = TieredTranslationCache(MemoryTranslationCache(), persisted)

    runner = BackgroundTaskRunner(
        max_workers=config.get('TRANSLATION_BACKFILL_WORKERS', 2),
        inline=config.get('TRANSLATION_BACKFILL_INLINE', False),
        app=app,
    )

    return TranslationService(
        provider=build_provider(config, cache=cache),
        store=TranslationStore(),
        cache=cache,
        runner=runner,
        backfill_limit=config.get('TRANSLATION_BACKFILL_LIMIT', 10),
        backfill_delay=config.get('TRANSLATION_BACKFILL_DELAY', 0.5),
        sync_max_retries=config.get('TRANSLATION_SYNC_MAX_RETRIES', SYNC_MAX_RETRIES),
    )


def get_translation_service() -> TranslationService:
    """The translation service of the current app."""
    return current_app.extensions['translation_service']
