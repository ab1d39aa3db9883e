"""
Unauthenticated API routes.
"""
from flask import Blueprint, current_app

from utils.response_util import error_response, success_response

public_bp = Blueprint('public', __name__, url_prefix='/api/public')


@public_bp.route('/iss', methods=['GET'])
def get_iss_tle():
    """Latest ISS element set straight from Space-Track (not stored)."""
    sync_service = current_app.extensions['sync_service']
    norad_id = current_app.config.get('PUBLIC_NORAD_ID', 25544)

    raw = sync_service.fetch_latest_public(norad_id)
    if raw is None:
        return error_response('ISS TLE not available', 503)

    return success_response({
        'norad_id': norad_id,
        'name': raw.name,
        'line1': raw.line1,
        'line2': raw.line2,
    })
