"""
Pytest configuration and fixtures for testing the WIRsuchen API.
"""

import os
import sys
import pytest
from faker import Faker

# Add the parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from wirsuchen import create_app, db
from wirsuchen.models import Offer, BlogPost
from wirsuchen.services.background import BackgroundTaskRunner
from wirsuchen.services.translation import TranslationService
from wirsuchen.services.translation_cache import MemoryTranslationCache
from wirsuchen.services.translation_providers import TranslationProvider
from wirsuchen.services.translation_store import TranslationStore

fake = Faker()


class FakeTranslateBackend:
    """Batch backend that prefixes each text with the target language."""

    name = 'fake'

    def __init__(self, api_key='test-key'):
        self.api_key = api_key
        self.calls = []
        self.fail_with = None

    def available(self):
        return bool(self.api_key)

    def translate_batch(self, texts, target_lang, source_lang=None):
        self.calls.append((list(texts), target_lang, source_lang))
        if self.fail_with is not None:
            raise self.fail_with
        return [f'[{target_lang}] {text}' for text in texts]


class FakeGenerativeBackend:
    """Generative backend: single texts and the four-language structured call."""

    name = 'fake-generative'

    def __init__(self, api_key='test-key'):
        self.api_key = api_key
        self.text_calls = []
        self.structured_calls = []
        self.fail_with = None

    def available(self):
        return bool(self.api_key)

    def translate_text(self, text, target_lang, source_lang=None, content_type='general'):
        self.text_calls.append((text, target_lang))
        if self.fail_with is not None:
            raise self.fail_with
        return f'<{target_lang}> {text}'

    def translate_all_languages(self, title, description, content_type='job'):
        self.structured_calls.append((title, description))
        if self.fail_with is not None:
            raise self.fail_with
        return {
            lang: {'title': f'<{lang}> {title}', 'description': f'<{lang}> {description}'}
            for lang in ('en', 'de', 'fr', 'it')
        }


class SleepRecorder:
    """Stands in for time.sleep and remembers the requested delays."""

    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    os.environ['FLASK_ENV'] = 'testing'

    app = create_app('testing')

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client for each test function."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create a fresh database session for each test."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        yield db.session
        db.session.rollback()


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def fake_backend():
    return FakeTranslateBackend()


@pytest.fixture
def fake_generative():
    return FakeGenerativeBackend()


@pytest.fixture
def provider(fake_backend, sleeper):
    """Provider with the fake batch backend and no real sleeping."""
    return TranslationProvider(primary=fake_backend, cache=MemoryTranslationCache(), sleep=sleeper)


@pytest.fixture
def translation_service(app, provider, sleeper):
    """Install a translation service backed by fakes for the duration of a test."""
    service = TranslationService(
        provider=provider,
        store=TranslationStore(),
        runner=BackgroundTaskRunner(inline=True, app=app),
        backfill_delay=0,
        sleep=sleeper,
    )
    original = app.extensions['translation_service']
    app.extensions['translation_service'] = service
    yield service
    app.extensions['translation_service'] = original


@pytest.fixture
def unconfigured_service(app):
    """Translation service without any backend: every provider call fails."""
    service = TranslationService(
        provider=TranslationProvider(cache=MemoryTranslationCache()),
        store=TranslationStore(),
        runner=BackgroundTaskRunner(inline=True, app=app),
        backfill_delay=0,
    )
    original = app.extensions['translation_service']
    app.extensions['translation_service'] = service
    yield service
    app.extensions['translation_service'] = original


def _create_offer(**overrides):
    """Helper to create an English job offer with sensible defaults."""
    data = {
        'type': 'job',
        'title': f'Senior Software Developer {fake.unique.random_int(min=1, max=99999)}',
        'description': 'We are looking for a developer to join our team and build the platform with you.',
        'company': fake.company(),
        'location': fake.city(),
        'category': 'it',
        'source': 'db',
        'status': 'active',
    }
    data.update(overrides)
    offer = Offer(**data)
    db.session.add(offer)
    db.session.commit()
    return offer


@pytest.fixture
def make_offer(db_session):
    """Factory fixture for offers."""
    return _create_offer


@pytest.fixture
def make_blog_post(db_session):
    """Factory fixture for blog posts."""
    def _create(**overrides):
        data = {
            'title': 'How to write a great application for your next job',
            'excerpt': 'Our tips for the perfect application.',
            'content': 'The first step is to read the job posting carefully and tailor your letter to it.',
            'status': 'published',
        }
        data.update(overrides)
        post = BlogPost(**data)
        db.session.add(post)
        db.session.commit()
        return post
    return _create
