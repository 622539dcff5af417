"""
Tests for the listing and translation endpoints.
"""

import pytest

from wirsuchen.services.translation_store import TranslationStore


class TestListJobs:
    """Tests for GET /api/jobs"""

    def test_empty(self, client, db_session, unconfigured_service):
        response = client.get('/api/jobs')

        assert response.status_code == 200
        data = response.get_json()
        assert data['jobs'] == []
        assert data['pagination'] == {'page': 1, 'limit': 20, 'total': 0, 'pages': 0}
        assert data['meta'] == {'translated': 0, 'untranslated': 0, 'language': 'en'}

    def test_translated_first_with_meta(self, client, make_offer, unconfigured_service):
        offers = [make_offer() for _ in range(3)]
        TranslationStore().upsert(offers[2].content_id, 'de', 'job', {'title': 'Entwickler'})

        response = client.get('/api/jobs?lang=de&limit=2')

        assert response.status_code == 200
        data = response.get_json()
        assert [job['id'] for job in data['jobs']] == [offers[2].id, offers[1].id]
        assert data['jobs'][0]['title'] == 'Entwickler'
        assert data['pagination'] == {'page': 1, 'limit': 2, 'total': 3, 'pages': 2}
        assert data['meta'] == {'translated': 1, 'untranslated': 2, 'language': 'de'}

    def test_locale_parameter(self, client, make_offer, translation_service):
        make_offer(title='Senior Software Developer')

        data = client.get('/api/jobs?locale=fr-CH').get_json()

        assert data['meta']['language'] == 'fr'
        assert data['jobs'][0]['title'] == '[fr] Senior Software Developer'

    def test_english_request_needs_no_translation(self, client, make_offer, translation_service, fake_backend):
        make_offer(title='Senior Software Developer')

        data = client.get('/api/jobs?lang=en').get_json()

        assert data['jobs'][0]['title'] == 'Senior Software Developer'
        assert fake_backend.calls == []

    def test_filters(self, client, make_offer, unconfigured_service):
        make_offer(category='it', location='Berlin')
        make_offer(category='health', location='Zurich')
        make_offer(category='it', location='Zurich', featured=True)

        assert client.get('/api/jobs?category=it').get_json()['pagination']['total'] == 2
        assert client.get('/api/jobs?location=zurich').get_json()['pagination']['total'] == 2
        assert client.get('/api/jobs?featured=true').get_json()['pagination']['total'] == 1

    def test_featured_first(self, client, make_offer, unconfigured_service):
        make_offer()
        featured = make_offer(featured=True)

        data = client.get('/api/jobs').get_json()
        assert data['jobs'][0]['id'] == featured.id

    @pytest.mark.parametrize('query', ['page=0', 'limit=0', 'page=-2'])
    def test_invalid_pagination(self, client, db_session, unconfigured_service, query):
        response = client.get(f'/api/jobs?{query}')
        assert response.status_code == 400
        assert 'error' in response.get_json()

    def test_deals_are_separate(self, client, make_offer, unconfigured_service):
        make_offer(type='deal', title='50% off headphones')
        make_offer()

        data = client.get('/api/deals').get_json()
        assert len(data['deals']) == 1
        assert data['deals'][0]['type'] == 'deal'


class TestListBlog:
    """Tests for GET /api/blog"""

    def test_published_only(self, client, make_blog_post, unconfigured_service):
        make_blog_post()
        make_blog_post(status='draft')

        data = client.get('/api/blog?lang=it').get_json()
        assert len(data['posts']) == 1
        assert data['meta']['language'] == 'it'


class TestTranslationStatus:
    """Tests for GET /api/translations/status"""

    def test_overall_statistics(self, client, make_offer, unconfigured_service):
        offer = make_offer()
        store = TranslationStore()
        store.upsert(offer.content_id, 'en', 'job', {'title': 'Developer'})
        store.upsert(offer.content_id, 'de', 'job', {'title': 'Entwickler'})

        response = client.get('/api/translations/status')

        assert response.status_code == 200
        stats = response.get_json()['statistics']
        assert stats['total_translations'] == 2
        assert stats['content_counts'] == {
            'jobs_in_db': 1,
            'expected_job_translations': 4,
            'actual_job_translations': 2,
            'coverage_percentage': 50,
        }
        assert response.get_json()['recent_translations'] is None

    def test_detailed(self, client, make_offer, unconfigured_service):
        offer = make_offer()
        TranslationStore().upsert(offer.content_id, 'fr', 'job', {'title': 'Développeur'})

        data = client.get('/api/translations/status?detailed=true').get_json()
        assert data['recent_translations'][0]['content_id'] == offer.content_id

    def test_single_item(self, client, make_offer, unconfigured_service):
        offer = make_offer()
        TranslationStore().upsert(offer.content_id, 'it', 'job', {'title': 'Sviluppatore'})

        data = client.get(f'/api/translations/status?content_id={offer.content_id}').get_json()
        assert data['content_id'] == offer.content_id
        assert data['coverage']['languages'] == {'en': False, 'de': False, 'fr': False, 'it': True}


class TestBulkTranslate:
    """Tests for POST /api/translations/bulk"""

    def test_runs_a_batch(self, client, make_offer, translation_service):
        make_offer()
        make_offer()

        response = client.post('/api/translations/bulk', json={'batchSize': 1, 'offset': 0})

        assert response.status_code == 200
        stats = response.get_json()['stats']
        assert stats['processedJobs'] == 1
        assert stats['translationsCreated'] == 4
        assert stats['remainingUntranslated'] == 1
        assert stats['nextOffset'] == 0

    def test_force_retranslates_covered_offers(self, client, make_offer, translation_service):
        offer = make_offer(title='Senior Software Developer')
        for lang in ('en', 'de', 'fr', 'it'):
            translation_service.store.upsert(offer.content_id, lang, 'job', {'title': 'stale'})

        skipped = client.post('/api/translations/bulk', json={})
        assert skipped.get_json()['stats']['processedJobs'] == 0

        response = client.post('/api/translations/bulk', json={'force': True})

        assert response.status_code == 200
        stats = response.get_json()['stats']
        assert stats['processedJobs'] == 1
        assert stats['translationsCreated'] == 4
        assert translation_service.store.get(offer.content_id, 'it', 'job')['title'] == '[it] Senior Software Developer'

    def test_force_from_query_string(self, client, make_offer, translation_service):
        offer = make_offer()
        translation_service.store.upsert(offer.content_id, 'de', 'job', {'title': 'stale'})

        response = client.post('/api/translations/bulk?force=true', json={})

        assert response.get_json()['stats']['translationsCreated'] == 4
        assert translation_service.store.get(offer.content_id, 'de', 'job')['title'] != 'stale'

    def test_force_must_be_boolean(self, client, db_session, translation_service):
        response = client.post('/api/translations/bulk', json={'force': 'yes'})
        assert response.status_code == 400

    def test_invalid_body(self, client, db_session, translation_service):
        response = client.post('/api/translations/bulk', json={'batchSize': 'ten'})
        assert response.status_code == 400

    def test_without_backend(self, client, db_session, unconfigured_service):
        response = client.post('/api/translations/bulk', json={})
        assert response.status_code == 503


class TestTranslateText:
    """Tests for POST /api/translate"""

    def test_single_text(self, client, translation_service):
        response = client.post('/api/translate', json={'text': 'Good morning', 'targetLanguage': 'de'})

        assert response.status_code == 200
        assert response.get_json() == {'translation': '[de] Good morning'}

    def test_multiple_texts(self, client, translation_service):
        response = client.post('/api/translate', json={'texts': ['One', '', 'Two'], 'targetLanguage': 'it'})
        assert response.get_json() == {'translations': ['[it] One', '', '[it] Two']}

    def test_same_source_and_target(self, client, translation_service, fake_backend):
        response = client.post('/api/translate', json={
            'text': 'Guten Morgen', 'targetLanguage': 'de', 'sourceLanguage': 'de',
        })
        assert response.get_json() == {'translation': 'Guten Morgen'}
        assert fake_backend.calls == []

    def test_backend_failure_returns_original(self, client, unconfigured_service):
        response = client.post('/api/translate', json={'text': 'Good morning', 'targetLanguage': 'fr'})
        assert response.status_code == 200
        assert response.get_json() == {'translation': 'Good morning'}

    @pytest.mark.parametrize('body', [
        {'text': 'Hello'},
        {'text': 'Hello', 'targetLanguage': 'es'},
        {'targetLanguage': 'de'},
        {'texts': 'Hello', 'targetLanguage': 'de'},
    ])
    def test_validation(self, client, translation_service, body):
        assert client.post('/api/translate', json=body).status_code == 400
