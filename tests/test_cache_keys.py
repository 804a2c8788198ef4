"""
Tests for cache key derivation.
"""

from app.services.cache_keys import DEFAULT_DOMAIN, get_text_hash, make_backend_key


class TestMakeBackendKey:

    def test_whitespace_differences_share_a_key(self):
        assert make_backend_key('en', 'fr', 'default', 'Hello  world') == \
            make_backend_key('en', 'fr', 'default', 'Hello world')

    def test_domain_changes_the_key(self):
        assert make_backend_key('en', 'fr', 'default', 'Hello world') != \
            make_backend_key('en', 'fr', 'other-domain', 'Hello world')

    def test_language_pair_changes_the_key(self):
        assert make_backend_key('en', 'fr', 'default', 'Hello') != \
            make_backend_key('en', 'de', 'default', 'Hello')
        assert make_backend_key('en', 'fr', 'default', 'Hello') != \
            make_backend_key('fr', 'en', 'default', 'Hello')

    def test_key_shape(self):
        key = make_backend_key('en', 'fr', 'docs', 'Hello world')
        source, target, domain, digest = key.split(':')
        assert (source, target, domain) == ('en', 'fr', 'docs')
        assert len(digest) == 32
        int(digest, 16)

    def test_stable_value(self):
        # Must not change between processes or releases
        assert make_backend_key('en', 'fr', 'default', 'Hello world') == \
            'en:fr:default:' + get_text_hash('Hello world')
        assert get_text_hash('Hello world') == get_text_hash('Hello world')

    def test_missing_domain_uses_default(self):
        assert make_backend_key('en', 'fr', None, 'Hi') == make_backend_key('en', 'fr', DEFAULT_DOMAIN, 'Hi')
        assert make_backend_key('en', 'fr', '', 'Hi') == make_backend_key('en', 'fr', DEFAULT_DOMAIN, 'Hi')

    def test_lone_surrogate_does_not_raise(self):
        key = make_backend_key('en', 'fr', 'default', 'abc\ud800')
        assert key != make_backend_key('en', 'fr', 'default', 'abc')
