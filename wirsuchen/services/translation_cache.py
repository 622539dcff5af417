"""Translation caches keyed by (source text hash, target language).

Two tiers share the same get/set/clear/stats contract:
- MemoryTranslationCache: process-local dict, lives until restart or clear().
- PersistedTranslationCache: Redis-backed entries with a TTL (24h default).
TieredTranslationCache checks memory first and promotes persisted hits.
"""
import json
import logging
import threading
import time

logger = logging.getLogger(__name__)

HASH_PREFIX_LENGTH = 100
DEFAULT_TTL_SECONDS = 60 * 60 * 24  # 24 hours

_BASE36 = '0123456789abcdefghijklmnopqrstuvwxyz'


def _to_base36(number: int) -> str:
    if number == 0:
        return '0'
    sign = '-' if number < 0 else ''
    number = abs(number)
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return sign + ''.join(reversed(digits))


def text_hash(text: str) -> str:
    """Polynomial rolling hash (h*31 + c, signed 32-bit) over a bounded prefix.

    The text length is appended so long texts sharing an opening paragraph
    do not collide.
    """
    h = 0
    for ch in text[:HASH_PREFIX_LENGTH]:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 2 ** 31:
        h -= 2 ** 32
    return f'{_to_base36(h)}.{len(text)}'


def cache_key(text: str, target_lang: str) -> str:
    return f'{text_hash(text)}:{target_lang}'


class MemoryTranslationCache:
    """In-process cache. Thread-safe, unbounded lifetime."""

    def __init__(self):
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, text: str, target_lang: str) -> str | None:
        with self._lock:
            return self._entries.get(cache_key(text, target_lang))

    def set(self, text: str, target_lang: str, translation: str):
        with self._lock:
            self._entries[cache_key(text, target_lang)] = translation

    def clear(self):
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        with self._lock:
            return {'size': len(self._entries), 'keys': list(self._entries.keys())}


class PersistedTranslationCache:
    """Durable cache tier on a Redis-compatible client.

    Entries are stored as JSON ``{"value", "timestamp"}``. Entries older than
    the TTL read as absent and are deleted. Writes sweep the other expired
    entries at most once per ``sweep_interval`` (a 24th of the TTL by default).
    Redis' own key expiry is set as well.
    """

    def __init__(self, client, ttl: int = DEFAULT_TTL_SECONDS, prefix: str = 'translation:',
                 sweep_interval: float | None = None, clock=time.time):
        self.client = client
        self.ttl = ttl
        self.prefix = prefix
        self.sweep_interval = sweep_interval if sweep_interval is not None else ttl / 24
        self._clock = clock
        self._last_sweep = None
        self._sweep_lock = threading.Lock()

    def _redis_key(self, text: str, target_lang: str) -> str:
        return f'{self.prefix}{cache_key(text, target_lang)}'

    def _is_expired(self, entry: dict) -> bool:
        return self._clock() - entry.get('timestamp', 0) > self.ttl

    def get(self, text: str, target_lang: str) -> str | None:
        key = self._redis_key(text, target_lang)
        try:
            raw = self.client.get(key)
            if raw is None:
                return None
            entry = json.loads(raw)
            if self._is_expired(entry):
                self.client.delete(key)
                return None
            return entry.get('value')
        except Exception as e:
            logger.debug(f"Persisted cache lookup error: {e}")
            return None

    def set(self, text: str, target_lang: str, translation: str):
        try:
            self._maybe_sweep()
            payload = json.dumps({'value': translation, 'timestamp': self._clock()})
            self.client.set(self._redis_key(text, target_lang), payload, ex=int(self.ttl))
        except Exception as e:
            logger.warning(f"Persisted cache storage error: {e}")

    def _maybe_sweep(self):
        now = self._clock()
        with self._sweep_lock:
            if self._last_sweep is not None and now - self._last_sweep < self.sweep_interval:
                return
            self._last_sweep = now
        self.sweep()

    def sweep(self) -> int:
        """Delete expired entries. Returns the number removed."""
        removed = 0
        for key in list(self.client.scan_iter(match=f'{self.prefix}*')):
            raw = self.client.get(key)
            if raw is None:
                continue
            try:
                expired = self._is_expired(json.loads(raw))
            except ValueError:
                expired = True
            if expired:
                self.client.delete(key)
                removed += 1
        return removed

    def clear(self):
        try:
            for key in list(self.client.scan_iter(match=f'{self.prefix}*')):
                self.client.delete(key)
        except Exception as e:
            logger.warning(f"Persisted cache clear error: {e}")

    def stats(self) -> dict:
        try:
            keys = [key[len(self.prefix):] for key in self.client.scan_iter(match=f'{self.prefix}*')]
        except Exception as e:
            logger.warning(f"Persisted cache stats error: {e}")
            keys = []
        return {'size': len(keys), 'keys': keys}


class TieredTranslationCache:
    """Memory tier in front of an optional persisted tier."""

    def __init__(self, memory=None, persisted=None):
        self.memory = memory or MemoryTranslationCache()
        self.persisted = persisted

    def get(self, text: str, target_lang: str) -> str | None:
        cached = self.memory.get(text, target_lang)
        if cached is not None:
            return cached
        if self.persisted is None:
            return None
        cached = self.persisted.get(text, target_lang)
        if cached is not None:
            self.memory.set(text, target_lang, cached)
        return cached

    def set(self, text: str, target_lang: str, translation: str):
        self.memory.set(text, target_lang, translation)
        if self.persisted is not None:
            self.persisted.set(text, target_lang, translation)

    def clear(self):
        self.memory.clear()
        if self.persisted is not None:
            self.persisted.clear()

    def stats(self) -> dict:
        stats = self.memory.stats()
        if self.persisted is not None:
            stats['persisted'] = self.persisted.stats()
        return stats
