"""Translation backends and the provider adapter in front of them.

Primary backend is the Google Cloud Translation v2 batch endpoint. When its
key is missing or the call fails, each text goes to Gemini with a
"translated text only" instruction. Gemini also serves the structured call
that returns EN/DE/FR/IT in one schema-constrained JSON response.
"""
import json
import logging
import re
import threading
import time
from concurrent.futures import Future, TimeoutError as FutureTimeoutError

import requests

from wirsuchen.services.errors import (
    MalformedResponse,
    ProviderRateLimited,
    ProviderUnavailable,
    TranslationError,
)
from wirsuchen.services.language_detection import SUPPORTED_LANGUAGES
from wirsuchen.services.translation_cache import MemoryTranslationCache, cache_key

logger = logging.getLogger(__name__)

GOOGLE_TRANSLATE_URL = 'https://translation.googleapis.com/language/translate/v2'
GEMINI_URL = 'https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent'

LANGUAGE_NAMES = {
    'en': 'English',
    'de': 'German',
    'fr': 'French',
    'it': 'Italian',
}

MAX_TEXT_LENGTH = 3000
STRUCTURED_DESCRIPTION_LENGTH = 1500

_RETRY_HINT_PATTERNS = [
    re.compile(r'retry in (\d+(?:\.\d+)?)\s*s', re.IGNORECASE),
    re.compile(r'retryDelay["\']?\s*[:=]\s*["\']?(\d+(?:\.\d+)?)s', re.IGNORECASE),
    re.compile(r'retry after (\d+(?:\.\d+)?)', re.IGNORECASE),
]


def parse_retry_after(message: str) -> float | None:
    """Extract a 'retry after N seconds' hint from a provider error message."""
    if not message:
        return None
    for pattern in _RETRY_HINT_PATTERNS:
        match = pattern.search(message)
        if match:
            return float(match.group(1))
    return None


class CircuitBreaker:
    """After N consecutive failures, skip the backend until a cooldown passes.

    Shared by every request thread that calls the backend.
    """

    def __init__(self, max_failures=3, cooldown=300, clock=time.time):
        self.max_failures = max_failures
        self.cooldown = cooldown
        self._clock = clock
        self._lock = threading.Lock()
        self.consecutive_failures = 0
        self.open_until = 0
        self.disabled = False  # permanent, e.g. invalid API key

    def is_open(self) -> bool:
        with self._lock:
            if self.disabled:
                return True
            if self.consecutive_failures >= self.max_failures:
                if self._clock() < self.open_until:
                    return True
                self.consecutive_failures = 0
                self.open_until = 0
                logger.info("Translation circuit breaker reset - retrying")
            return False

    def record_success(self):
        with self._lock:
            self.consecutive_failures = 0

    def record_failure(self, permanent=False):
        with self._lock:
            if permanent:
                self.disabled = True
                return
            self.consecutive_failures += 1
            if self.consecutive_failures >= self.max_failures:
                self.open_until = self._clock() + self.cooldown
                logger.warning(
                    f"Translation failed {self.consecutive_failures} times in a row. "
                    f"Pausing for {self.cooldown}s."
                )


class GoogleTranslateBackend:
    """Google Cloud Translation API v2 (batch: accepts an array of strings)."""

    name = 'google'

    def __init__(self, api_key: str, timeout: float = 10, session=None):
        self.api_key = (api_key or '').strip()
        self.timeout = timeout
        self.session = session or requests
        self.breaker = CircuitBreaker()

    def available(self) -> bool:
        return bool(self.api_key) and not self.breaker.is_open()

    def translate_batch(self, texts: list, target_lang: str, source_lang: str | None = None) -> list:
        payload = {'q': texts, 'target': target_lang, 'format': 'text'}
        if source_lang:
            payload['source'] = source_lang

        try:
            response = self.session.post(
                GOOGLE_TRANSLATE_URL,
                params={'key': self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            self.breaker.record_failure()
            raise ProviderUnavailable(f"Google Translate request failed: {e}") from e

        try:
            result = response.json()
        except ValueError:
            result = {}

        if response.status_code == 429:
            message = result.get('error', {}).get('message', '') if isinstance(result, dict) else ''
            self.breaker.record_failure()
            raise ProviderRateLimited(message or 'Google Translate rate limited', parse_retry_after(message))

        if response.status_code != 200 or 'error' in result:
            error = result.get('error', {}) if isinstance(result, dict) else {}
            reasons = [d.get('reason') for d in error.get('details', []) if isinstance(d, dict)]
            if 'API_KEY_INVALID' in reasons:
                logger.error(
                    "Google Translate API key is INVALID. Google backend is now DISABLED. "
                    "Set a valid GOOGLE_TRANSLATE_API_KEY or remove it."
                )
                self.breaker.record_failure(permanent=True)
            else:
                self.breaker.record_failure()
            raise ProviderUnavailable(
                f"Google Translate error: {error.get('message', response.status_code)}"
            )

        translations = result.get('data', {}).get('translations')
        if not isinstance(translations, list) or len(translations) != len(texts):
            self.breaker.record_failure()
            raise MalformedResponse("Google Translate returned an unexpected translation count")

        self.breaker.record_success()
        return [t.get('translatedText') or original for t, original in zip(translations, texts)]


class GeminiBackend:
    """Generative text model used for single-text fallback and structured multi-language output."""

    name = 'gemini'

    def __init__(self, api_key: str, model: str = 'gemini-2.5-flash', timeout: float = 30, session=None):
        self.api_key = (api_key or '').strip()
        self.model = model
        self.timeout = timeout
        self.session = session or requests
        self.breaker = CircuitBreaker()

    def available(self) -> bool:
        return bool(self.api_key) and not self.breaker.is_open()

    def _generate(self, prompt: str, generation_config: dict) -> str:
        try:
            response = self.session.post(
                GEMINI_URL.format(model=self.model),
                headers={'x-goog-api-key': self.api_key, 'Content-Type': 'application/json'},
                json={
                    'contents': [{'parts': [{'text': prompt}]}],
                    'generationConfig': generation_config,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            self.breaker.record_failure()
            raise ProviderUnavailable(f"Gemini request failed: {e}") from e

        try:
            result = response.json()
        except ValueError:
            result = {}
        error = result.get('error', {}) if isinstance(result, dict) else {}

        if response.status_code == 429 or error.get('status') == 'RESOURCE_EXHAUSTED':
            # retryDelay sits in error.details; search the whole error payload for the hint
            hint = parse_retry_after(error.get('message', '')) or parse_retry_after(json.dumps(error))
            self.breaker.record_failure()
            raise ProviderRateLimited(error.get('message') or 'Gemini rate limited', hint)

        if response.status_code != 200 or error:
            self.breaker.record_failure()
            raise ProviderUnavailable(f"Gemini error: {error.get('message', response.status_code)}")

        try:
            text = result['candidates'][0]['content']['parts'][0]['text']
        except (KeyError, IndexError, TypeError) as e:
            self.breaker.record_failure()
            raise MalformedResponse("Gemini returned no candidates") from e

        self.breaker.record_success()
        return text

    def translate_text(self, text: str, target_lang: str, source_lang: str | None = None,
                       content_type: str = 'general') -> str:
        source_name = LANGUAGE_NAMES.get(source_lang, 'the source language') if source_lang else 'the source language'
        prompt = (
            f"You are a professional translator. Translate the following {content_type.replace('_', ' ')} "
            f"from {source_name} to {LANGUAGE_NAMES[target_lang]}.\n\n"
            "IMPORTANT INSTRUCTIONS:\n"
            "1. Return ONLY the translated text.\n"
            "2. Do NOT add any conversational text, introductions, or explanations.\n"
            "3. Maintain the original tone, formatting, and professional style.\n\n"
            f"Content to translate:\n{text}"
        )
        translation = self._generate(prompt, {'temperature': 0.3, 'maxOutputTokens': 2000}).strip()
        if not translation:
            raise MalformedResponse("Gemini returned an empty translation")
        return translation

    def translate_all_languages(self, title: str, description: str, content_type: str = 'job') -> dict:
        """One call returning {en: {title, description}, de: ..., fr: ..., it: ...}."""
        field_schema = {
            'type': 'OBJECT',
            'properties': {'title': {'type': 'STRING'}, 'description': {'type': 'STRING'}},
            'required': ['title', 'description'],
        }
        schema = {
            'type': 'OBJECT',
            'properties': {lang: field_schema for lang in SUPPORTED_LANGUAGES},
            'required': list(SUPPORTED_LANGUAGES),
        }
        prompt = (
            f"Translate this {content_type} posting into English, German, French and Italian. "
            "If the text is already in one of these languages, return it unchanged for that language. "
            "Keep company names, product names and technical terms as they are.\n\n"
            f"Title: {title}\n\nDescription: {description}"
        )
        raw = self._generate(prompt, {
            'temperature': 0.2,
            'maxOutputTokens': 8000,
            'responseMimeType': 'application/json',
            'responseSchema': schema,
        })

        try:
            parsed = json.loads(raw)
        except ValueError as e:
            raise MalformedResponse(f"Structured translation is not valid JSON: {e}") from e

        result = {}
        for lang in SUPPORTED_LANGUAGES:
            entry = parsed.get(lang) if isinstance(parsed, dict) else None
            if (not isinstance(entry, dict) or not isinstance(entry.get('title'), str)
                    or not isinstance(entry.get('description'), str)):
                raise MalformedResponse(f"Structured translation is missing language '{lang}'")
            result[lang] = {'title': entry['title'], 'description': entry['description']}
        return result


class TranslationProvider:
    """Uniform translate() over the configured backends.

    - Output keeps input order and length; empty strings pass through.
    - Same source and target language returns the input without any call.
    - Rate limits are retried up to ``max_retries`` attempts, sleeping the
      provider hint plus a buffer, or ``default_delay``.
    - Concurrent requests for the same (text, language) share one call.
    """

    def __init__(self, primary=None, secondary=None, cache=None, max_retries=3,
                 default_delay=30, retry_buffer=1, max_delay=60, wait_timeout=120, sleep=time.sleep):
        self.primary = primary
        self.secondary = secondary
        self.cache = cache if cache is not None else MemoryTranslationCache()
        self.max_retries = max_retries
        self.default_delay = default_delay
        self.retry_buffer = retry_buffer
        self.max_delay = max_delay
        self.wait_timeout = wait_timeout
        self._sleep = sleep
        self._inflight: dict[str, Future] = {}
        self._inflight_lock = threading.Lock()

    def is_configured(self) -> bool:
        return any(backend is not None and backend.api_key for backend in (self.primary, self.secondary))

    def with_retry(self, fn, backend=None, max_retries=None):
        """Call fn, retrying on rate limits and malformed responses.

        ``max_retries`` overrides the provider's attempt budget for one call.
        Retrying stops early once ``backend`` reports itself unavailable.
        """
        max_retries = max_retries or self.max_retries
        last_error = None
        for attempt in range(1, max_retries + 1):
            try:
                return fn()
            except ProviderRateLimited as e:
                last_error = e
                if attempt >= max_retries:
                    break
                if backend is not None and not backend.available():
                    logger.warning(f"Translation backend {backend.name} paused, not retrying")
                    break
                if e.retry_after is not None:
                    delay = e.retry_after + self.retry_buffer
                else:
                    delay = self.default_delay
                delay = min(delay, self.max_delay)
                logger.warning(
                    f"Translation rate limited, waiting {delay:.1f}s before retry "
                    f"{attempt + 1}/{max_retries}"
                )
                self._sleep(delay)
            except MalformedResponse as e:
                last_error = e
                logger.warning(f"Malformed translation response (attempt {attempt}/{max_retries}): {e}")
        raise ProviderUnavailable(f"Translation failed after {attempt} attempts: {last_error}")

    def translate(self, texts: list, target_lang: str, source_lang: str | None = None,
                  max_retries: int | None = None) -> list:
        if not texts:
            return []
        if source_lang and source_lang == target_lang:
            return list(texts)

        results = [None] * len(texts)
        pending = []
        for index, text in enumerate(texts):
            if not text or not text.strip():
                results[index] = text
                continue
            cached = self.cache.get(text, target_lang)
            if cached is not None:
                results[index] = cached
            else:
                pending.append((index, text))

        if pending:
            translated = self._translate_shared(
                [text for _, text in pending], target_lang, source_lang, max_retries
            )
            for (index, text), translation in zip(pending, translated):
                results[index] = translation

        return results

    def _translate_shared(self, texts: list, target_lang: str, source_lang: str | None,
                          max_retries: int | None = None) -> list:
        """Translate texts, joining any in-flight call for the same key."""
        futures = []
        owned = {}  # key -> (text, future)
        with self._inflight_lock:
            for text in texts:
                key = cache_key(text, target_lang)
                future = self._inflight.get(key)
                if future is None:
                    future = Future()
                    self._inflight[key] = future
                    owned[key] = (text, future)
                futures.append(future)

        if owned:
            owned_items = list(owned.items())
            try:
                translations = self._translate_uncached(
                    [text for _, (text, _) in owned_items], target_lang, source_lang, max_retries
                )
            except Exception as e:
                for _, (_, future) in owned_items:
                    future.set_exception(e)
                raise
            else:
                for (_, (text, future)), translation in zip(owned_items, translations):
                    self.cache.set(text, target_lang, translation)
                    future.set_result(translation)
            finally:
                with self._inflight_lock:
                    for key in owned:
                        self._inflight.pop(key, None)

        try:
            return [future.result(timeout=self.wait_timeout) for future in futures]
        except FutureTimeoutError as e:
            raise ProviderUnavailable("Timed out waiting for a shared translation call") from e

    def _translate_uncached(self, texts: list, target_lang: str, source_lang: str | None,
                            max_retries: int | None = None) -> list:
        clipped = [text[:MAX_TEXT_LENGTH] for text in texts]

        if self.primary is not None and self.primary.available():
            try:
                return self.with_retry(
                    lambda: self.primary.translate_batch(clipped, target_lang, source_lang),
                    backend=self.primary, max_retries=max_retries,
                )
            except TranslationError as e:
                logger.warning(f"Primary translation backend failed, falling back: {e}")

        if self.secondary is not None and self.secondary.available():
            return [
                self.with_retry(
                    lambda t=text: self.secondary.translate_text(t, target_lang, source_lang),
                    backend=self.secondary, max_retries=max_retries,
                )
                for text in clipped
            ]

        raise ProviderUnavailable("No translation backend available")

    def translate_structured(self, title: str, description: str, content_type: str = 'job') -> dict:
        """Translate title and description into all four languages in one call."""
        if self.secondary is None or not self.secondary.available():
            raise ProviderUnavailable("Structured translation needs the generative backend")

        description = (description or '')[:STRUCTURED_DESCRIPTION_LENGTH]
        result = self.with_retry(
            lambda: self.secondary.translate_all_languages(title, description, content_type),
            backend=self.secondary,
        )
        for lang, fields in result.items():
            if title:
                self.cache.set(title, lang, fields['title'])
            if description:
                self.cache.set(description, lang, fields['description'])
        return result


def build_provider(config, cache=None, sleep=time.sleep) -> TranslationProvider:
    """Create the provider from Flask config values."""
    google_key = config.get('GOOGLE_TRANSLATE_API_KEY', '')
    gemini_key = config.get('GEMINI_API_KEY', '')
    return TranslationProvider(
        primary=GoogleTranslateBackend(google_key) if google_key else None,
        secondary=GeminiBackend(gemini_key, config.get('GEMINI_MODEL', 'gemini-2.5-flash')) if gemini_key else None,
        cache=cache,
        max_retries=config.get('TRANSLATION_MAX_RETRIES', 3),
        default_delay=config.get('TRANSLATION_RATE_LIMIT_DELAY', 30),
        retry_buffer=config.get('TRANSLATION_RETRY_BUFFER', 1),
        sleep=sleep,
    )
