"""Heuristic source-language detection for job, deal and blog text.

Each language carries a table of weighted regex patterns (function words,
diacritics, domain vocabulary). The detector adds up ``matches * weight`` per
language and picks the best score. Swap the table, or the whole detector, to
change behaviour; the translation service only depends on ``detect()``.
"""

import re
import logging

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ['en', 'de', 'fr', 'it']
DEFAULT_LANGUAGE = 'en'

MIN_TEXT_LENGTH = 2
MIN_SCORE = 1

# German-market job titles carry a gender marker even when the title is English
GENDER_MARKER = r'\((?:m/w/d|w/m/d|m/w/x|d/m/w|all[e]?\s*geschlechter)\)'

LANGUAGE_PATTERNS = {
    'en': [
        (r'\b(?:the|and|with|for|our|you|we|are|is|of|to|your|will|in)\b', 1),
        (r'\b(?:developer|engineer|software|senior|junior|manager|remote|'
         r'full[- ]?stack|frontend|backend|devops|cloud|data|analyst|consultant|'
         r'designer|specialist|lead|intern|sales|marketing|support)\b', 1),
    ],
    'de': [
        (r'\b(?:und|für|mit|bei|wir|sie|der|die|das|ist|werden|haben|zur|zum|'
         r'einen|einem|unser|unsere|unseres|ihre|suchen|arbeiten)\b', 1),
        (r'[äöüß]', 2),
        (r'\b(?:bewerber|unternehmen|stellenangebot|mitarbeiter\w*|'
         r'\w*entwickler\w*|kenntnisse|ausbildung|deutschland)\b', 1),
        (GENDER_MARKER, 2),
    ],
    'fr': [
        (r'\b(?:pour|avec|dans|nous|vous|les|des|une|sont|cette|sur|par|qui|'
         r'que|aux|ses|nos|vos|notre|votre)\b', 1),
        (r'[éêëâîïôûçœ]', 2),
        (r'\b(?:recherch\w*|poste|emploi|entreprise|candidat\w*)\b', 1),
    ],
    'it': [
        (r'\b(?:per|con|che|sono|della|nella|questo|questa|gli|del|dei|'
         r'delle|alla|allo|nostro|vostro)\b', 1),
        (r'[àèìòù](?=\W|$)', 2),
        (r'\b(?:cerchiamo|lavoro|azienda|offerta|candidat[oi])\b', 1),
    ],
}


class LanguageDetector:
    """Weighted-pattern language classifier. ``detect()`` never raises."""

    def __init__(self, patterns=None, min_score=MIN_SCORE, default=DEFAULT_LANGUAGE):
        table = patterns or LANGUAGE_PATTERNS
        self.min_score = min_score
        self.default = default
        self._compiled = {
            lang: [(re.compile(regex, re.IGNORECASE), weight) for regex, weight in rules]
            for lang, rules in table.items()
        }

    def scores(self, text: str) -> dict:
        """Return the accumulated score per language."""
        result = {}
        for lang, rules in self._compiled.items():
            result[lang] = sum(len(pattern.findall(text)) * weight for pattern, weight in rules)
        return result

    def detect(self, text: str) -> str:
        if not text or len(text.strip()) < MIN_TEXT_LENGTH:
            return self.default

        scores = self.scores(text)
        # Ties resolve in SUPPORTED_LANGUAGES order, English first
        ordered = sorted(
            scores.items(),
            key=lambda item: (-item[1], SUPPORTED_LANGUAGES.index(item[0])
                              if item[0] in SUPPORTED_LANGUAGES else len(SUPPORTED_LANGUAGES)),
        )
        best_lang, best_score = ordered[0]

        if best_score < self.min_score:
            return self.default

        en_score = scores.get('en', 0)
        if best_lang == 'de' and en_score > 0 and best_score - en_score <= 1:
            logger.debug(f"German/English scores within 1 point ({scores}), choosing English")
            return 'en'

        return best_lang


_default_detector = LanguageDetector()


def detect_language(text: str) -> str:
    """Detect the language of ``text`` with the default pattern table."""
    return _default_detector.detect(text)


def needs_translation(text: str, target_lang: str) -> bool:
    """Check whether text is long enough and not already in the target language."""
    if not text or len(text) < 10:
        return False
    return detect_language(text) != target_lang


def normalize_language(code: str | None, default: str = DEFAULT_LANGUAGE) -> str:
    """Normalize a language/locale code ('de-DE', 'FR') to a supported code."""
    if not code:
        return default
    code = code.lower().strip()[:2]
    return code if code in SUPPORTED_LANGUAGES else default
