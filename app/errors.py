"""Error types raised while resolving a translation batch.

Validation and upstream errors propagate to the route, which turns them
into HTTP responses. Cache errors never leave the cache store.
"""


class TranslationServiceError(Exception):
    """Base class for translation service errors."""


class InvalidRequest(TranslationServiceError):
    """The request as a whole is malformed (shape, languages, domain)."""


class RequestTooLarge(InvalidRequest):
    """The summed normalized segment length is over the configured ceiling."""

    def __init__(self, total_chars, max_chars):
        self.total_chars = total_chars
        self.max_chars = max_chars
        super().__init__(f'Request too large (over {max_chars} characters)')


class InvalidSegment(TranslationServiceError):
    """A single segment failed validation; the whole batch is rejected."""

    def __init__(self, index, reason, code=None):
        self.index = index
        self.reason = reason
        self.code = code
        super().__init__(f'Invalid segment at index {index}: {reason}')


class UpstreamError(TranslationServiceError):
    """Base class for failures of the external translation provider."""


class UpstreamShapeError(UpstreamError):
    """The provider response is not a list of translations."""


class UpstreamLengthMismatch(UpstreamError):
    """The provider returned a different number of translations than requested."""

    def __init__(self, expected, received):
        self.expected = expected
        self.received = received
        super().__init__(f'Translation length mismatch: requested {expected}, received {received}')


class UpstreamApiError(UpstreamError):
    """The provider reported a failure or could not be reached.

    ``permanent`` marks failures that will not go away on retry (bad API key).
    """

    def __init__(self, message, status=None, permanent=False):
        self.status = status
        self.permanent = permanent
        super().__init__(message)


class CacheUnavailable(TranslationServiceError):
    """The cache database cannot be reached."""


class InternalError(TranslationServiceError):
    """Unexpected failure while resolving a batch."""
