"""Translation routes."""

from flask import Blueprint, request, jsonify, current_app
from app import limiter
from app.errors import InternalError, InvalidRequest, InvalidSegment, UpstreamApiError, UpstreamError
from app.services.cache_keys import DEFAULT_DOMAIN
from app.services.segmentation import is_ui_string, segment_batch
from app.services.stripe_service import user_has_active_subscription
from app.utils.auth import token_required

translate_bp = Blueprint('translate', __name__)

MAX_LANG_LENGTH = 10
MAX_DOMAIN_LENGTH = 100


def _is_lang(value):
    return isinstance(value, str) and 0 < len(value) <= MAX_LANG_LENGTH


def _non_empty_list(value):
    return isinstance(value, list) and len(value) > 0


def parse_translate_request(data):
    """Validate the request body shape.

    Returns:
        tuple: (source_lang, target_lang, texts, domain)

    Raises:
        InvalidRequest: missing languages, no segments, non-string items, bad domain
    """
    if not isinstance(data, dict):
        raise InvalidRequest('JSON body required')

    source_lang = data.get('sourceLang')
    target_lang = data.get('targetLang')
    if not _is_lang(source_lang) or not _is_lang(target_lang):
        raise InvalidRequest('sourceLang and targetLang are required')

    # 'sentences' is the older name for 'segments'
    if _non_empty_list(data.get('segments')):
        texts, field = data['segments'], 'segments'
    elif _non_empty_list(data.get('sentences')):
        texts, field = data['sentences'], 'sentences'
    else:
        raise InvalidRequest('Either segments or sentences array is required')

    if not all(isinstance(text, str) for text in texts):
        raise InvalidRequest(f'All {field} must be strings')

    domain = data.get('domain')
    if domain is None or domain == '':
        domain = DEFAULT_DOMAIN
    elif not isinstance(domain, str):
        raise InvalidRequest('domain must be a string')
    elif len(domain) > MAX_DOMAIN_LENGTH:
        raise InvalidRequest(f'domain must be at most {MAX_DOMAIN_LENGTH} characters')

    return source_lang, target_lang, texts, domain


@translate_bp.route('/translate', methods=['POST'])
@limiter.limit("60 per minute")
@token_required
def translate(current_user_id):
    """Translate a batch of segments, serving repeats from the cache.

    Body:
        sourceLang, targetLang: language codes
        segments (or sentences): list of strings
        domain: cache partition (optional, defaults to 'default')

    Returns:
        translations: one string per segment, in request order
    """
    try:
        if not user_has_active_subscription(current_user_id):
            return jsonify({'error': 'Subscription required'}), 402

        source_lang, target_lang, texts, domain = parse_translate_request(request.get_json(silent=True))

        resolver = current_app.extensions['batch_resolver']
        result = resolver.resolve(source_lang, target_lang, texts, domain=domain, user_id=current_user_id)

        return jsonify({'translations': result.translations}), 200

    except (InvalidRequest, InvalidSegment) as e:
        return jsonify({'error': str(e)}), 400
    except UpstreamApiError as e:
        current_app.logger.warning(f'Upstream translation error: {str(e)}')
        return jsonify({'error': 'Upstream translation error', 'details': str(e)}), 502
    except UpstreamError as e:
        current_app.logger.error(f'Upstream integrity error: {str(e)}')
        return jsonify({'error': str(e)}), 500
    except InternalError as e:
        current_app.logger.exception(f'Translator failure: {str(e)}')
        return jsonify({'error': 'Internal server error'}), 500
    except Exception as e:
        current_app.logger.exception(f'Internal /translate error: {str(e)}')
        return jsonify({'error': 'Internal server error'}), 500


@translate_bp.route('/segment', methods=['POST'])
def segment():
    """Split texts into sentence segments.

    Body:
        texts: list of strings

    Returns:
        segments: flat list of sentences
        uiStrings: per-segment flag for short UI labels
    """
    data = request.get_json(silent=True) or {}
    texts = data.get('texts')
    if not isinstance(texts, list) or not all(isinstance(text, str) for text in texts):
        return jsonify({'error': 'texts must be a list of strings'}), 400

    segments = segment_batch(texts)
    return jsonify({
        'segments': segments,
        'uiStrings': [is_ui_string(s) for s in segments],
    }), 200
