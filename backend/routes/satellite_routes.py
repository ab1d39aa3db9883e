"""
API routes for an owner's tracked satellites and their TLE history.

The owner id arrives in the X-User-Id header, set by the authentication
layer in front of this service, and is used only as a partition key.
"""
from flask import Blueprint, current_app, request

from utils.response_util import error_response, success_response

satellite_bp = Blueprint('satellites', __name__, url_prefix='/api/satellites')

OWNER_HEADER = 'X-User-Id'


def _owner_id():
    return (request.headers.get(OWNER_HEADER) or '').strip() or None


def _sync_service():
    return current_app.extensions['sync_service']


@satellite_bp.before_request
def require_owner():
    if _owner_id() is None:
        return error_response('Authentication Required', 401)


@satellite_bp.route('', methods=['GET'])
def list_satellites():
    """All of the owner's tracked satellites, ordered by name."""
    repository = _sync_service().repository
    satellites = repository.list_satellites(_owner_id())
    return success_response([sat.to_dict(include_tle=False) for sat in satellites])


@satellite_bp.route('/<int:norad_id>', methods=['GET'])
def get_satellite(norad_id):
    """
    Current snapshot of one satellite.

    Unknown objects are fetched from Space-Track on demand; if that fails
    the answer is 404 rather than a server error.
    """
    user_id = _owner_id()
    sync_service = _sync_service()

    satellite = sync_service.repository.get_satellite(norad_id, user_id)
    if satellite is None:
        satellite = sync_service.fetch_on_demand(norad_id, user_id)
        if satellite is None:
            return error_response('Satellite not found', 404)

    return success_response(satellite.to_dict())


@satellite_bp.route('', methods=['POST'])
def add_satellite():
    """
    Start tracking a satellite and store its latest element set.

    Body: {"norad_id": 25544}
    """
    payload = request.get_json(silent=True) or {}
    norad_id = payload.get('norad_id')
    if norad_id in (None, ''):
        return error_response('Missing NORAD ID', 400)
    try:
        norad_id = int(norad_id)
    except (TypeError, ValueError):
        return error_response('NORAD ID must be an integer', 400)

    satellite = _sync_service().fetch_on_demand(norad_id, _owner_id())
    if satellite is None:
        return error_response('Invalid NORAD ID', 404)

    return success_response(satellite.to_dict(), status_code=201)


@satellite_bp.route('/<int:norad_id>/rename', methods=['PATCH'])
def rename_satellite(norad_id):
    """Body: {"name": "..."}"""
    payload = request.get_json(silent=True) or {}
    name = (payload.get('name') or '').strip()
    if not name:
        return error_response('Name cannot be empty', 400)

    satellite = _sync_service().repository.rename_satellite(norad_id, _owner_id(), name)
    if satellite is None:
        return error_response('Satellite not found', 404)

    return success_response(satellite.to_dict(include_tle=False))


@satellite_bp.route('/<int:norad_id>', methods=['DELETE'])
def delete_satellite(norad_id):
    if not _sync_service().repository.delete_satellite(norad_id, _owner_id()):
        return error_response('Satellite not found', 404)
    return success_response(message='Satellite deleted')


@satellite_bp.route('/<int:norad_id>/tle-derived', methods=['GET'])
def get_tle_derived(norad_id):
    """Derived orbital parameter history, oldest epoch first."""
    rows = _sync_service().repository.get_derived_history(norad_id, _owner_id())
    return success_response([row.to_dict() for row in rows])


@satellite_bp.route('/<int:norad_id>/tle-history', methods=['GET'])
def get_tle_history(norad_id):
    """Raw element set history, oldest epoch first."""
    rows = _sync_service().repository.get_history(norad_id, _owner_id())
    return success_response([row.to_dict() for row in rows])
