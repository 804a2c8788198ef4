"""Upstream machine-translation providers with swappable backends.

Each provider translates an ordered batch in one HTTP call and returns one
translation per input, in input order. Anything else is an error: the
resolver cannot safely guess which output belongs to which input.
"""
import logging
import threading
import time

import requests

from app.errors import UpstreamApiError, UpstreamLengthMismatch, UpstreamShapeError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

# Circuit breaker: after N consecutive failures, pause for a cooldown
MAX_CONSECUTIVE_FAILURES = 3
COOLDOWN_SECONDS = 300  # 5 minutes

# 4xx statuses that point at the provider account rather than the request
PROVIDER_FAILURE_STATUSES = (401, 403, 429, 456)


class CircuitBreaker:
    """Stops calling a provider that keeps failing.

    Opens for ``cooldown`` seconds after ``max_failures`` consecutive
    failures. A permanent trip (invalid API key) never resets.
    """

    def __init__(self, max_failures=MAX_CONSECUTIVE_FAILURES, cooldown=COOLDOWN_SECONDS, clock=time.time):
        self.max_failures = max_failures
        self.cooldown = cooldown
        self._clock = clock
        self._lock = threading.Lock()
        self._consecutive_failures = 0
        self._open_until = 0
        self._permanently_open = False

    def is_open(self) -> bool:
        with self._lock:
            if self._permanently_open:
                return True

            if self._consecutive_failures >= self.max_failures:
                if self._clock() < self._open_until:
                    return True
                # Cooldown expired, reset and allow retry
                self._consecutive_failures = 0
                self._open_until = 0
                logger.info("Translation circuit breaker reset - retrying")

            return False

    def record_success(self):
        with self._lock:
            self._consecutive_failures = 0

    def record_failure(self, permanent=False):
        with self._lock:
            if permanent:
                self._permanently_open = True
                logger.error("Translation API key is INVALID. Translation is now DISABLED.")
                return

            self._consecutive_failures += 1
            if self._consecutive_failures >= self.max_failures:
                self._open_until = self._clock() + self.cooldown
                logger.warning(
                    f"Translation failed {self._consecutive_failures} times in a row. "
                    f"Pausing for {self.cooldown}s."
                )


def counts_as_provider_failure(error) -> bool:
    """Whether an upstream error should trip the circuit breaker.

    Transport failures carry no status. Request errors such as an unsupported
    language pair (other 4xx) are caused by one caller and leave the breaker alone.
    """
    if error.permanent:
        return True
    status = error.status
    if not isinstance(status, int):
        return True
    return status >= 500 or status in PROVIDER_FAILURE_STATUSES


class TranslationProvider:
    """Base class for upstream providers.

    Subclasses implement ``_request`` returning the parsed JSON body and
    ``_extract`` turning it into a list of strings.
    """

    name = 'base'

    def __init__(self, api_key, timeout=DEFAULT_TIMEOUT, breaker=None):
        self.api_key = api_key
        self.timeout = timeout
        self.breaker = breaker or CircuitBreaker()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def translate_batch(self, texts, source_lang, target_lang) -> list[str]:
        """Translate ``texts`` and return the translations in the same order.

        Raises:
            UpstreamApiError: provider failure, timeout, missing key, or open circuit
            UpstreamShapeError: response is not a list of translations
            UpstreamLengthMismatch: wrong number of translations returned
        """
        texts = list(texts)
        if not texts:
            return []

        if not self.is_configured:
            raise UpstreamApiError(f'{self.name} translation is not configured')

        if self.breaker.is_open():
            raise UpstreamApiError(f'{self.name} translation temporarily unavailable')

        try:
            result = self._request(texts, source_lang, target_lang)
            translations = self._extract(result)
            if len(translations) != len(texts):
                logger.error(f"Length mismatch from {self.name}: {len(texts)} requested, {len(translations)} received")
                raise UpstreamLengthMismatch(len(texts), len(translations))
        except UpstreamApiError as e:
            if counts_as_provider_failure(e):
                self.breaker.record_failure(permanent=e.permanent)
            raise
        except (UpstreamShapeError, UpstreamLengthMismatch):
            self.breaker.record_failure()
            raise

        self.breaker.record_success()
        return translations

    def _post(self, url, **kwargs):
        try:
            response = requests.post(url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            logger.warning(f"{self.name} timeout")
            raise UpstreamApiError(f'{self.name} request timed out') from e
        except requests.RequestException as e:
            logger.warning(f"{self.name} error: {e}")
            raise UpstreamApiError(f'{self.name} request failed: {e}') from e

        try:
            body = response.json()
        except ValueError as e:
            if response.status_code >= 400:
                raise UpstreamApiError(f'{self.name} returned HTTP {response.status_code}',
                                       status=response.status_code) from e
            raise UpstreamShapeError(f'{self.name} returned a non-JSON response') from e

        return response.status_code, body

    def _request(self, texts, source_lang, target_lang):
        raise NotImplementedError

    def _extract(self, result) -> list[str]:
        raise NotImplementedError


def _string_list(items, field, provider):
    if not isinstance(items, list):
        raise UpstreamShapeError(f'Unexpected {provider} response shape')

    translations = []
    for item in items:
        value = item.get(field) if isinstance(item, dict) else None
        if not isinstance(value, str):
            raise UpstreamShapeError(f'Unexpected {provider} response shape')
        translations.append(value)
    return translations


class GoogleTranslateProvider(TranslationProvider):
    """Google Cloud Translation API (v2)."""

    name = 'google'
    url = 'https://translation.googleapis.com/language/translate/v2'

    def _request(self, texts, source_lang, target_lang):
        params = {
            'key': self.api_key,
            'q': texts,
            'source': source_lang,
            'target': target_lang,
            'format': 'text',
        }
        status, result = self._post(self.url, data=params)

        if isinstance(result, dict) and 'error' in result:
            error = result['error']
            if not isinstance(error, dict):
                error = {'message': str(error)}
            message = error.get('message', 'unknown error')
            logger.warning(f"Google Translate error: {message}")
            key_invalid = any(
                detail.get('reason') == 'API_KEY_INVALID'
                for detail in error.get('details', [])
                if isinstance(detail, dict)
            )
            raise UpstreamApiError(message, status=error.get('code', status), permanent=key_invalid)

        if status >= 400:
            raise UpstreamApiError(f'Google Translate returned HTTP {status}', status=status)

        return result

    def _extract(self, result):
        data = result.get('data') if isinstance(result, dict) else None
        translations = data.get('translations') if isinstance(data, dict) else None
        return _string_list(translations, 'translatedText', 'Google Translate')


class DeepLProvider(TranslationProvider):
    """DeepL API. Free-tier keys end with ``:fx``."""

    name = 'deepl'
    free_url = 'https://api-free.deepl.com/v2/translate'
    pro_url = 'https://api.deepl.com/v2/translate'

    # HTTP statuses DeepL uses for account-level failures
    ERROR_MESSAGES = {
        403: 'DeepL authorization failed',
        429: 'DeepL rate limit exceeded',
        456: 'DeepL quota exceeded',
    }

    @property
    def url(self):
        return self.free_url if self.api_key.endswith(':fx') else self.pro_url

    @staticmethod
    def _target_code(lang):
        # DeepL uses uppercase language codes
        target = lang.upper()
        if target == 'EN':
            target = 'EN-US'
        elif target == 'PT':
            target = 'PT-PT'
        return target

    def _request(self, texts, source_lang, target_lang):
        headers = {'Authorization': f'DeepL-Auth-Key {self.api_key}'}
        data = {
            'text': texts,
            'source_lang': source_lang.upper(),
            'target_lang': self._target_code(target_lang),
        }
        status, result = self._post(self.url, headers=headers, data=data)

        if status >= 400:
            message = result.get('message') if isinstance(result, dict) else None
            message = message or self.ERROR_MESSAGES.get(status, f'DeepL returned HTTP {status}')
            logger.warning(f"DeepL error: {message}")
            raise UpstreamApiError(message, status=status, permanent=status == 403)

        return result

    def _extract(self, result):
        translations = result.get('translations') if isinstance(result, dict) else None
        return _string_list(translations, 'text', 'DeepL')


PROVIDERS = {
    'google': GoogleTranslateProvider,
    'deepl': DeepLProvider,
}


def build_translator(config):
    """Create the provider selected by ``TRANSLATION_SERVICE``."""
    service = config.get('TRANSLATION_SERVICE', 'google')
    provider_cls = PROVIDERS.get(service)
    if provider_cls is None:
        raise ValueError(f"Unknown TRANSLATION_SERVICE '{service}' (expected one of {', '.join(PROVIDERS)})")

    api_key = config.get('DEEPL_API_KEY' if service == 'deepl' else 'GOOGLE_TRANSLATE_API_KEY', '')
    provider = provider_cls(api_key, timeout=config.get('TRANSLATION_TIMEOUT', DEFAULT_TIMEOUT))
    if not provider.is_configured:
        logger.warning(f"{service} API key not set - /translate will fail for cache misses")
    return provider
