"""
Smoke tests: the app boots and wires the translation service.
"""

from wirsuchen.services.translation import TranslationService


class TestHealthEndpoints:
    """Verify the server boots and responds."""

    def test_root_health(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.get_json()['status'] == 'ok'

    def test_api_health(self, client):
        resp = client.get('/api/health')
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['status'] == 'ok'
        assert 'translation_configured' in data


class TestAppWiring:
    """The app factory registers routes and the translation service."""

    def test_translation_service_registered(self, app):
        assert isinstance(app.extensions['translation_service'], TranslationService)

    def test_testing_runs_background_work_inline(self, app):
        assert app.config['TRANSLATION_BACKFILL_INLINE'] is True
        assert app.extensions['translation_service'].runner.inline is True

    def test_api_routes_registered(self, app):
        rules = {rule.rule for rule in app.url_map.iter_rules()}
        for route in ('/api/jobs', '/api/deals', '/api/blog', '/api/translate',
                      '/api/translations/status', '/api/translations/bulk'):
            assert route in rules
