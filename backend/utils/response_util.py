"""
JSON envelopes shared by the satellite, public and scheduler routes.

Every body carries ``status`` ('success' or 'error'); payloads go under
``data`` so the front end can read snapshots and history rows the same way.
"""
from flask import jsonify


def success_response(data=None, message=None, status_code=200):
    """
    Wrap a snapshot, a list of history rows or an element set.

    ``data`` is omitted entirely when None (e.g. after a delete), so an empty
    history still serialises as ``[]``.
    """
    body = {'status': 'success'}
    if message:
        body['message'] = message
    if data is not None:
        body['data'] = data
    return jsonify(body), status_code


def error_response(message, status_code=400):
    """
    Error body for owner-header, validation and not-found failures.

    Upstream Space-Track failures never reach this as a 5xx; the routes
    answer 404 or 503 instead.
    """
    body = {'status': 'error', 'message': message}
    return jsonify(body), status_code
