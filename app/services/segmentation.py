"""Segment normalization and validation.

Every segment is normalized before it is fingerprinted or validated so that
whitespace-only differences ("Hello   world" vs "Hello world") share one
cache entry.
"""
import re
from dataclasses import dataclass

_WHITESPACE_RE = re.compile(r'\s+')
_SENTENCE_END_RE = re.compile(r'[.!?]+')

DEFAULT_MAX_SEGMENT_LENGTH = 1000
UI_STRING_MAX_LENGTH = 50

# Validation error codes
NOT_A_STRING = 'not_a_string'
EMPTY_SEGMENT = 'empty_segment'
SEGMENT_TOO_LONG = 'segment_too_long'
INVALID_ENCODING = 'invalid_encoding'


@dataclass(frozen=True)
class SegmentValidation:
    valid: bool
    normalized: str = ''
    error: str | None = None
    message: str | None = None


def normalize_segment(text) -> str:
    """Trim and collapse internal whitespace. Non-strings become ''."""
    if not isinstance(text, str):
        return ''
    return _WHITESPACE_RE.sub(' ', text.strip())


def validate_segment(segment, max_length: int = DEFAULT_MAX_SEGMENT_LENGTH) -> SegmentValidation:
    """Validate one segment and hand back its normalized form."""
    if not isinstance(segment, str):
        return SegmentValidation(False, error=NOT_A_STRING, message='Segment must be a string')

    normalized = normalize_segment(segment)

    if not normalized:
        return SegmentValidation(False, error=EMPTY_SEGMENT, message='Segment cannot be empty')

    try:
        normalized.encode('utf-8')
    except UnicodeEncodeError:
        # Lone surrogates cannot be sent upstream or stored
        return SegmentValidation(
            False,
            normalized=normalized,
            error=INVALID_ENCODING,
            message='Segment contains characters that are not valid UTF-8',
        )

    if len(normalized) > max_length:
        return SegmentValidation(
            False,
            normalized=normalized,
            error=SEGMENT_TOO_LONG,
            message=f'Segment exceeds maximum length of {max_length} characters',
        )

    return SegmentValidation(True, normalized=normalized)


def is_ui_string(segment) -> bool:
    """Short labels without sentence punctuation (buttons, menu items)."""
    normalized = normalize_segment(segment)
    if not normalized or len(normalized) > UI_STRING_MAX_LENGTH:
        return False
    return normalized[-1] not in '.!?'


def split_into_segments(text) -> list[str]:
    """Split text into sentences, keeping the terminating punctuation."""
    if not isinstance(text, str) or not text.strip():
        return []

    parts = []
    last_index = 0
    for match in _SENTENCE_END_RE.finditer(text):
        part = text[last_index:match.end()].strip()
        if part:
            parts.append(part)
        last_index = match.end()

    remaining = text[last_index:].strip()
    if remaining:
        parts.append(remaining)

    return parts


def segment_batch(texts) -> list[str]:
    if not isinstance(texts, list):
        return []

    segments = []
    for text in texts:
        segments.extend(split_into_segments(text))
    return segments
