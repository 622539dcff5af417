"""
Tests for content ids, content items and feed deduplication.
"""

import pytest

from wirsuchen.services.content import (
    ContentItem,
    build_content_id,
    dedupe_key,
    group_duplicates,
    item_from_model,
    parse_content_id,
)
from wirsuchen.services.errors import ContentIdMalformed


class TestContentIds:
    """Tests for build_content_id() and parse_content_id()"""

    def test_build(self):
        assert build_content_id('job', 'adzuna', 123) == 'job-adzuna-123'

    def test_source_defaults_to_db(self):
        assert build_content_id('deal', None, 7) == 'deal-db-7'

    def test_source_is_normalized(self):
        assert build_content_id('job', 'Rapid-API', 'abc') == 'job-rapid_api-abc'

    def test_missing_id(self):
        with pytest.raises(ContentIdMalformed):
            build_content_id('job', 'adzuna', None)

    def test_unknown_type(self):
        with pytest.raises(ContentIdMalformed):
            build_content_id('event', 'db', 1)

    def test_parse_keeps_dashes_in_id(self):
        assert parse_content_id('job-adzuna-1b2c-3d4e') == ('job', 'adzuna', '1b2c-3d4e')

    @pytest.mark.parametrize('content_id', ['', 'job-1', 'event-db-1', 'job--1'])
    def test_parse_malformed(self, content_id):
        with pytest.raises(ContentIdMalformed):
            parse_content_id(content_id)


class TestContentItem:
    """Tests for ContentItem and item_from_model()"""

    def test_translatable_fields_skip_empty(self):
        item = ContentItem('job-db-1', 'job', {'title': 'Developer', 'description': '  '})
        assert item.translatable_fields() == {'title': 'Developer'}

    def test_from_offer(self, make_offer):
        offer = make_offer(source='Adzuna', title='Nurse', description=None)
        item = item_from_model(offer)

        assert item.content_id == f'job-adzuna-{offer.id}'
        assert item.content_id == offer.content_id
        assert item.translatable_fields() == {'title': 'Nurse'}

    def test_from_blog_post(self, make_blog_post):
        post = make_blog_post()
        item = item_from_model(post)

        assert item.content_id == f'blog-db-{post.id}'
        assert set(item.fields) == {'title', 'excerpt', 'content'}


class TestDedupe:
    """Tests for dedupe_key() and group_duplicates()"""

    def test_key_is_normalized(self):
        row = {'title': ' Senior Developer ', 'company': 'ACME', 'location': 'Berlin'}
        assert dedupe_key(row) == 'senior developer|acme|berlin'

    def test_external_id_is_part_of_key(self):
        row = {'title': 'Developer', 'company': 'ACME', 'location': None, 'external_id': 'X1'}
        assert dedupe_key(row) == 'developer|acme|x1'

    def test_first_occurrence_leads_its_group(self):
        rows = [
            {'id': 1, 'title': 'Developer', 'company': 'ACME', 'location': 'Berlin'},
            {'id': 2, 'title': 'developer ', 'company': 'acme', 'location': 'BERLIN'},
            {'id': 3, 'title': 'Developer', 'company': 'ACME', 'location': 'Munich'},
        ]
        groups = group_duplicates(rows)
        assert [[row['id'] for row in group] for group in groups] == [[1, 2], [3]]

    def test_works_on_models(self, make_offer):
        first = make_offer(title='Nurse', company='Clinic', location='Zurich')
        second = make_offer(title='Nurse', company='Clinic', location='Zurich')
        assert group_duplicates([first, second]) == [[first, second]]
