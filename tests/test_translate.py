"""
Tests for POST /translate and POST /segment.
"""

import pytest
from app import db
from app.errors import UpstreamApiError
from app.models import TranslationCache, TranslationUsage


def _payload(**overrides):
    data = {'sourceLang': 'en', 'targetLang': 'fr', 'segments': ['Hello', 'World']}
    data.update(overrides)
    return data


class TestTranslateAccess:

    def test_requires_token(self, client, db_session):
        response = client.post('/translate', json=_payload())

        assert response.status_code == 401

    def test_rejects_bad_token(self, client, db_session):
        response = client.post('/translate', json=_payload(), headers={'Authorization': 'Bearer nope'})

        assert response.status_code == 401

    def test_requires_subscription(self, client, auth_headers, fake_translator):
        response = client.post('/translate', json=_payload(), headers=auth_headers)

        assert response.status_code == 402
        assert fake_translator.calls == []


class TestTranslate:

    def test_translates_and_caches(self, client, subscribed_headers, fake_translator):
        response = client.post('/translate', json=_payload(), headers=subscribed_headers)

        assert response.status_code == 200
        assert response.get_json()['translations'] == ['fr:Hello', 'fr:World']
        assert TranslationCache.query.count() == 2

    def test_second_request_served_from_cache(self, client, subscribed_headers, fake_translator):
        client.post('/translate', json=_payload(segments=['a']), headers=subscribed_headers)
        response = client.post('/translate', json=_payload(segments=['a', 'b', 'a']), headers=subscribed_headers)

        assert response.get_json()['translations'] == ['fr:a', 'fr:b', 'fr:a']
        assert fake_translator.calls == [['a'], ['b']]

        entry = TranslationCache.query.filter_by(original_text='a').one()
        assert entry.hit_count == 1

    def test_accepts_sentences_alias(self, client, subscribed_headers, fake_translator):
        response = client.post('/translate', json={
            'sourceLang': 'en', 'targetLang': 'de', 'sentences': ['Hi'],
        }, headers=subscribed_headers)

        assert response.status_code == 200
        assert response.get_json()['translations'] == ['de:Hi']

    def test_domain_partitions_cache(self, client, subscribed_headers, fake_translator):
        client.post('/translate', json=_payload(segments=['Hi'], domain='app'), headers=subscribed_headers)
        client.post('/translate', json=_payload(segments=['Hi'], domain='email'), headers=subscribed_headers)

        assert len(fake_translator.calls) == 2
        assert {row.domain for row in TranslationCache.query.all()} == {'app', 'email'}

    def test_logs_usage(self, client, subscribed_user, subscribed_headers, fake_translator):
        client.post('/translate', json=_payload(segments=['a', 'a'], domain='shop'), headers=subscribed_headers)

        rows = TranslationUsage.query.order_by(TranslationUsage.id).all()
        assert len(rows) == 2
        assert all(row.user_id == subscribed_user['id'] for row in rows)
        assert all(row.domain == 'shop' for row in rows)
        assert [row.was_cache_hit for row in rows] == [False, False]

    def test_manual_access_flag(self, client, test_user, auth_headers, fake_translator):
        from app.models import User
        user = db.session.get(User, test_user['id'])
        user.has_access = True
        db.session.commit()

        response = client.post('/translate', json=_payload(), headers=auth_headers)

        assert response.status_code == 200


class TestTranslateValidation:

    @pytest.mark.parametrize('payload', [
        {'targetLang': 'fr', 'segments': ['a']},
        {'sourceLang': 'en', 'segments': ['a']},
        {'sourceLang': 5, 'targetLang': 'fr', 'segments': ['a']},
        {'sourceLang': 'en', 'targetLang': 'fr'},
        {'sourceLang': 'en', 'targetLang': 'fr', 'segments': []},
        {'sourceLang': 'en', 'targetLang': 'fr', 'segments': 'Hello'},
        {'sourceLang': 'en', 'targetLang': 'fr', 'segments': ['a', 3]},
        {'sourceLang': 'en', 'targetLang': 'fr', 'segments': ['a'], 'domain': 7},
        {'sourceLang': 'en', 'targetLang': 'fr', 'segments': ['a'], 'domain': 'd' * 101},
    ])
    def test_bad_shape(self, client, subscribed_headers, fake_translator, payload):
        response = client.post('/translate', json=payload, headers=subscribed_headers)

        assert response.status_code == 400
        assert fake_translator.calls == []

    def test_invalid_segment_reports_index(self, client, subscribed_headers, fake_translator):
        response = client.post('/translate', json=_payload(segments=['ok', '  ']), headers=subscribed_headers)

        assert response.status_code == 400
        assert 'index 1' in response.get_json()['error']

    def test_lone_surrogate_is_rejected(self, client, subscribed_headers, fake_translator):
        body = '{"sourceLang": "en", "targetLang": "fr", "segments": ["ok", "abc\\ud800"]}'

        response = client.post('/translate', data=body, content_type='application/json',
                               headers=subscribed_headers)

        assert response.status_code == 400
        assert 'index 1' in response.get_json()['error']
        assert fake_translator.calls == []

    def test_request_too_large(self, client, subscribed_headers, fake_translator):
        segments = ['x' * 1000] * 9
        response = client.post('/translate', json=_payload(segments=segments), headers=subscribed_headers)

        assert response.status_code == 400
        assert 'too large' in response.get_json()['error']
        assert fake_translator.calls == []


class TestTranslateUpstreamErrors:

    def test_api_error_is_502(self, client, subscribed_headers, fake_translator):
        fake_translator.error = UpstreamApiError('Rate limit exceeded', status=429)

        response = client.post('/translate', json=_payload(), headers=subscribed_headers)

        assert response.status_code == 502
        data = response.get_json()
        assert data['error'] == 'Upstream translation error'
        assert 'Rate limit' in data['details']

    def test_length_mismatch_is_500_and_caches_nothing(self, client, subscribed_headers, fake_translator):
        fake_translator.override = ['only one']

        response = client.post('/translate', json=_payload(), headers=subscribed_headers)

        assert response.status_code == 500
        assert 'mismatch' in response.get_json()['error']
        assert TranslationCache.query.count() == 0

    def test_unexpected_error_is_generic_500(self, client, subscribed_headers, fake_translator):
        fake_translator.error = KeyError('boom')

        response = client.post('/translate', json=_payload(), headers=subscribed_headers)

        assert response.status_code == 500
        assert response.get_json()['error'] == 'Internal server error'


class TestSegment:

    def test_splits_texts(self, client):
        response = client.post('/segment', json={'texts': ['Hello there. Save', 'Cancel']})

        assert response.status_code == 200
        data = response.get_json()
        assert data['segments'] == ['Hello there.', 'Save', 'Cancel']
        assert data['uiStrings'] == [False, True, True]

    def test_rejects_bad_input(self, client):
        response = client.post('/segment', json={'texts': 'Hello'})

        assert response.status_code == 400


class TestHealth:

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'ok'
        assert data['cache'] == 'ok'
