"""Cache analytics routes."""

from flask import Blueprint, request, jsonify
from app.services.analytics import get_cache_hit_rate_by_domain, get_top_segments_by_domain
from app.utils.auth import token_required

analytics_bp = Blueprint('analytics', __name__)

MAX_DAYS = 365
MAX_LIMIT = 100


@analytics_bp.route('/domains/<domain>', methods=['GET'])
@token_required
def domain_stats(current_user_id, domain):
    """Hit rate and most requested segments for a cache domain.

    Query params:
        days: look-back window for the hit rate (default 7)
        limit: number of top segments (default 20)
    """
    days = request.args.get('days', 7, type=int)
    limit = request.args.get('limit', 20, type=int)
    if days < 1 or days > MAX_DAYS:
        return jsonify({'error': f'days must be between 1 and {MAX_DAYS}'}), 400
    if limit < 1 or limit > MAX_LIMIT:
        return jsonify({'error': f'limit must be between 1 and {MAX_LIMIT}'}), 400

    hit_rate = get_cache_hit_rate_by_domain(domain, days_back=days)
    if hit_rate is None:
        return jsonify({'error': 'Analytics unavailable'}), 503

    return jsonify({
        'domain': domain,
        'days': days,
        'hitRate': hit_rate,
        'topSegments': get_top_segments_by_domain(domain, limit=limit),
    }), 200
