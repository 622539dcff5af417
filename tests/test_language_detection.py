"""
Tests for the heuristic language detector.
"""

import pytest

from wirsuchen.services.language_detection import (
    LanguageDetector,
    detect_language,
    needs_translation,
    normalize_language,
)


class TestDetectLanguage:
    """Tests for detect_language()"""

    def test_english_title_with_gender_marker(self):
        """English job titles keep English despite the German gender marker."""
        assert detect_language('Senior Software Developer (m/w/d)') == 'en'

    def test_german_sentence(self):
        text = 'Wir suchen einen Softwareentwickler für unser Team in München. Sie haben Erfahrung mit Python.'
        assert detect_language(text) == 'de'

    def test_french_sentence(self):
        text = 'Nous recherchons un développeur pour notre équipe à Paris.'
        assert detect_language(text) == 'fr'

    def test_italian_sentence(self):
        text = 'Cerchiamo uno sviluppatore per la nostra azienda. Il lavoro è a Milano.'
        assert detect_language(text) == 'it'

    @pytest.mark.parametrize('text', ['', 'H', 'Hi', '12345 67890', '   '])
    def test_short_or_unscored_text_defaults_to_english(self, text):
        assert detect_language(text) == 'en'

    def test_german_title_with_marker(self):
        assert detect_language('Softwareentwickler (m/w/d) für unser Team') == 'de'

    def test_deterministic(self):
        text = 'Projektleiter für die Baustelle gesucht'
        assert detect_language(text) == detect_language(text)


class TestLanguageDetector:
    """Tests for LanguageDetector with custom tables."""

    def test_tie_resolves_in_language_order(self):
        detector = LanguageDetector(patterns={
            'fr': [(r'\bfoo\b', 1)],
            'it': [(r'\bfoo\b', 1)],
        })
        assert detector.detect('foo bar') == 'fr'

    def test_below_threshold_uses_default(self):
        detector = LanguageDetector(patterns={'de': [(r'\bfoo\b', 1)]}, min_score=2)
        assert detector.detect('foo bar') == 'en'

    def test_scores_count_weighted_matches(self):
        scores = LanguageDetector().scores('Größe')
        # ö and ß each weigh 2
        assert scores['de'] == 4


class TestNeedsTranslation:
    """Tests for needs_translation()"""

    def test_short_text_never_needs_translation(self):
        assert needs_translation('Developer', 'de') is False

    def test_english_text_into_german(self):
        assert needs_translation('We are looking for a senior developer', 'de') is True

    def test_same_language(self):
        assert needs_translation('We are looking for a senior developer', 'en') is False


class TestNormalizeLanguage:
    """Tests for normalize_language()"""

    @pytest.mark.parametrize('code,expected', [
        ('de', 'de'),
        ('de-CH', 'de'),
        ('FR', 'fr'),
        ('it_IT', 'it'),
        ('es', 'en'),
        (None, 'en'),
        ('', 'en'),
    ])
    def test_normalize(self, code, expected):
        assert normalize_language(code) == expected

    def test_custom_default(self):
        assert normalize_language('xx', default=None) is None
