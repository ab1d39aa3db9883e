"""
Shared fixtures: an in-memory app, a Space-Track session with a fake clock
and patchable HTTP session, and canned element sets.
"""
import re
from unittest.mock import MagicMock

import pytest
import requests

from app import create_app
from models import db
from services.spacetrack_session import SpaceTrackSession
from services.sync_service import SyncService

# Real ISS element set
ISS_LINE1 = "1 25544U 98067A   23028.71505935  .00016717  00000+0  10270-3 0  9009"
ISS_LINE2 = "2 25544  51.6458 359.7975 0005650  89.5483  34.6206 15.50001033 98219"

# Synthetic LEO object: mean motion 15.5, inclination 51.6, eccentricity 0006700
SYN_LINE1 = "1 99999U 24001A   24001.50000000  .00001000  00000-0  12345-4 0  9991"
SYN_LINE2 = "2 99999  51.6000 200.0000 0006700  90.0000 270.0000 15.50000000123456"

# Same object, one day later
SYN_LINE1_NEXT = "1 99999U 24001A   24002.50000000  .00001000  00000-0  12345-4 0  9992"


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def build_response(status_code=200, text='', json_data=None, cookies=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.cookies = cookies or {}
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response


def three_line(name, line1, line2):
    return f"0 {name}\r\n{line1}\r\n{line2}\r\n"


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def login_ok():
    return build_response(200, '""', cookies={'chocolatechip': 'session-token'})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def http():
    return requests.Session()


@pytest.fixture
def space_track(http, clock):
    return SpaceTrackSession(
        username='tester@example.com',
        password='secret',
        base_url='https://www.space-track.org',
        session_ttl=20 * 60,
        rate_limit_cooldown=60,
        http=http,
        clock=clock,
    )


@pytest.fixture
def sync_service(space_track, sleeps):
    return SyncService(
        space_track,
        pacing_seconds=1.0,
        max_attempts=3,
        retry_backoff=30.0,
        sleep=sleeps.append,
    )


@pytest.fixture
def app(sync_service):
    app = create_app('testing', sync_service=sync_service)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def upstream():
    """
    Canned Space-Track answers keyed by NORAD id.

    Values are either a response object or an exception instance to raise.
    """
    answers = {}

    def fake_get(url, cookies=None, timeout=None):
        match = re.search(r'NORAD_CAT_ID/(\d+)/', url)
        answer = answers.get(int(match.group(1))) if match else None
        if answer is None:
            return build_response(200, '')
        if isinstance(answer, Exception):
            raise answer
        return answer

    fake_get.answers = answers
    return fake_get
