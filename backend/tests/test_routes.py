from unittest.mock import patch

import pytest
import requests

from services.epoch_resolver import resolve_epoch
from services.orbit_derivation import RawElementSet, derive
from services.tle_repository import TLERepository
from conftest import (
    ISS_LINE1,
    ISS_LINE2,
    SYN_LINE1,
    SYN_LINE1_NEXT,
    SYN_LINE2,
    three_line,
)

USER = 'user-1'
HEADERS = {'X-User-Id': USER}


def _observation(line1):
    raw = RawElementSet(name='SYNTH-1', line1=line1, line2=SYN_LINE2)
    return raw, resolve_epoch(line1), derive(line1, SYN_LINE2)


@pytest.fixture
def gp_record(make_response):
    record = {'OBJECT_NAME': 'SYNTH-1', 'TLE_LINE1': SYN_LINE1, 'TLE_LINE2': SYN_LINE2}
    return make_response(200, json_data=[record])


def test_health(client):
    response = client.get('/api/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'ok'


def test_owner_header_required(client):
    response = client.get('/api/satellites')
    assert response.status_code == 401
    assert response.get_json()['status'] == 'error'


def test_on_demand_fetch(client, http, login_ok, gp_record):
    with patch.object(http, "post", return_value=login_ok), \
            patch.object(http, "get", return_value=gp_record):
        response = client.get('/api/satellites/99999', headers=HEADERS)

    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['norad_id'] == 99999
    assert data['orbit_type'] == 'LEO'
    assert data['tle_line1'] == SYN_LINE1


def test_stored_snapshot_served_without_upstream(client, http, login_ok, gp_record):
    with patch.object(http, "post", return_value=login_ok), \
            patch.object(http, "get", return_value=gp_record):
        client.get('/api/satellites/99999', headers=HEADERS)

    with patch.object(http, "get") as mock_get:
        response = client.get('/api/satellites/99999', headers=HEADERS)
    assert response.status_code == 200
    mock_get.assert_not_called()


def test_on_demand_failure_is_not_found(client, http, login_ok, make_response):
    with patch.object(http, "post", return_value=login_ok), \
            patch.object(http, "get", return_value=make_response(500, 'boom')):
        response = client.get('/api/satellites/99999', headers=HEADERS)

    assert response.status_code == 404
    assert response.get_json()['message'] == 'Satellite not found'


def test_on_demand_without_session_is_not_found(client, http):
    with patch.object(http, "post", side_effect=requests.ConnectionError("down")):
        response = client.get('/api/satellites/99999', headers=HEADERS)
    assert response.status_code == 404


class TestAddSatellite:
    def test_created(self, client, http, login_ok, gp_record):
        with patch.object(http, "post", return_value=login_ok), \
                patch.object(http, "get", return_value=gp_record):
            response = client.post('/api/satellites', json={'norad_id': 99999}, headers=HEADERS)

        assert response.status_code == 201
        listing = client.get('/api/satellites', headers=HEADERS).get_json()['data']
        assert [sat['norad_id'] for sat in listing] == [99999]
        assert 'tle_line1' not in listing[0]

    @pytest.mark.parametrize('payload', [{}, {'norad_id': ''}, {'norad_id': 'abc'}])
    def test_bad_payload(self, client, payload):
        response = client.post('/api/satellites', json=payload, headers=HEADERS)
        assert response.status_code == 400

    def test_unknown_object(self, client, http, login_ok, make_response):
        with patch.object(http, "post", return_value=login_ok), \
                patch.object(http, "get", return_value=make_response(200, '[]', json_data=[])):
            response = client.post('/api/satellites', json={'norad_id': 1}, headers=HEADERS)
        assert response.status_code == 404


class TestOwnerEdits:
    @pytest.fixture(autouse=True)
    def stored(self, client, http, login_ok, gp_record):
        with patch.object(http, "post", return_value=login_ok), \
                patch.object(http, "get", return_value=gp_record):
            client.post('/api/satellites', json={'norad_id': 99999}, headers=HEADERS)

    def test_rename(self, client):
        response = client.patch('/api/satellites/99999/rename', json={'name': 'Mine'},
                                headers=HEADERS)
        assert response.status_code == 200
        assert response.get_json()['data']['name'] == 'Mine'

    def test_rename_empty(self, client):
        response = client.patch('/api/satellites/99999/rename', json={'name': '  '},
                                headers=HEADERS)
        assert response.status_code == 400

    def test_other_owner_cannot_see(self, client):
        response = client.patch('/api/satellites/99999/rename', json={'name': 'Mine'},
                                headers={'X-User-Id': 'someone-else'})
        assert response.status_code == 404

    def test_delete(self, client):
        assert client.delete('/api/satellites/99999', headers=HEADERS).status_code == 200
        assert client.delete('/api/satellites/99999', headers=HEADERS).status_code == 404


def test_derived_history_oldest_first(app, client):
    repository = TLERepository()
    for line1 in (SYN_LINE1_NEXT, SYN_LINE1):
        raw, epoch, derived = _observation(line1)
        repository.record_observation(99999, USER, raw, epoch, derived)

    derived_rows = client.get('/api/satellites/99999/tle-derived', headers=HEADERS).get_json()['data']
    history_rows = client.get('/api/satellites/99999/tle-history', headers=HEADERS).get_json()['data']

    assert [row['epoch'][:10] for row in derived_rows] == ['2024-01-01', '2024-01-02']
    assert [row['tle_line1'] for row in history_rows] == [SYN_LINE1, SYN_LINE1_NEXT]
    assert 'bstar' in derived_rows[0]


class TestPublicIss:
    def test_available(self, client, http, login_ok, make_response):
        body = three_line('ISS (ZARYA)', ISS_LINE1, ISS_LINE2)
        with patch.object(http, "post", return_value=login_ok), \
                patch.object(http, "get", return_value=make_response(200, body)):
            response = client.get('/api/public/iss')

        assert response.status_code == 200
        data = response.get_json()['data']
        assert data == {'norad_id': 25544, 'name': 'ISS (ZARYA)',
                        'line1': ISS_LINE1, 'line2': ISS_LINE2}

    def test_unavailable(self, client, http, login_ok, make_response):
        with patch.object(http, "post", return_value=login_ok), \
                patch.object(http, "get", return_value=make_response(429)):
            response = client.get('/api/public/iss')
        assert response.status_code == 503


def test_manual_trigger_runs_sync(client, http, login_ok):
    with patch.object(http, "post", return_value=login_ok):
        response = client.post('/api/scheduler/trigger-update')

    assert response.status_code == 200
    assert response.get_json()['report']['status'] == 'empty'

    status = client.get('/api/scheduler/status').get_json()
    assert status['running'] is False
    assert status['sync']['last_report']['status'] == 'empty'
