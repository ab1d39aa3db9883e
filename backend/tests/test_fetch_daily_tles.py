from unittest.mock import MagicMock, patch

import pytest
import requests

from jobs import fetch_daily_tles
from services import scheduler_service
from services.tle_repository import TLERepository
from conftest import SYN_LINE1, SYN_LINE2, three_line


@pytest.fixture
def tracked(app):
    TLERepository().track(99999, 'user-1')


def test_parse_args_defaults():
    args = fetch_daily_tles.parse_args([])
    assert not args.serve
    assert not args.exit_on_failure
    assert args.config is None


def test_completed_run(app, tracked, http, login_ok, make_response):
    body = three_line('SYNTH-1', SYN_LINE1, SYN_LINE2)
    with patch.object(http, "post", return_value=login_ok), \
            patch.object(http, "get", return_value=make_response(200, body)):
        assert fetch_daily_tles.main([], app=app) == fetch_daily_tles.EXIT_OK

    assert scheduler_service.update_stats['last_status'] == 'success'


def test_partial_run_still_succeeds(app, tracked, http, login_ok, make_response):
    with patch.object(http, "post", return_value=login_ok), \
            patch.object(http, "get", return_value=make_response(500, 'boom')):
        assert fetch_daily_tles.main(['--exit-on-failure'], app=app) == fetch_daily_tles.EXIT_OK


def test_failure_exit_status(app, tracked, http):
    with patch.object(http, "post", side_effect=requests.ConnectionError("down")):
        assert fetch_daily_tles.main(['--exit-on-failure'], app=app) == fetch_daily_tles.EXIT_SYNC_FAILED


def test_failure_without_flag(app, tracked, http):
    with patch.object(http, "post", side_effect=requests.ConnectionError("down")):
        assert fetch_daily_tles.main([], app=app) == fetch_daily_tles.EXIT_OK


def test_missing_credentials(app, http):
    session = app.extensions['sync_service'].session
    session.username = None
    with patch.object(http, "post") as mock_post:
        assert fetch_daily_tles.main([], app=app) == fetch_daily_tles.EXIT_SETUP_ERROR
    mock_post.assert_not_called()


def test_add_sync_job_registers_interval_job(app):
    target = MagicMock()
    scheduler_service.add_sync_job(target, app, 12)

    args, kwargs = target.add_job.call_args
    assert args == (scheduler_service.run_sync_job, 'interval')
    assert kwargs['hours'] == 12
    assert kwargs['id'] == scheduler_service.SYNC_JOB_ID
    assert kwargs['max_instances'] == 1
    assert 'next_run_time' not in kwargs


def test_serve_runs_first_pass_immediately(app):
    with patch.object(fetch_daily_tles, 'BlockingScheduler') as scheduler_cls:
        assert fetch_daily_tles.serve(app) == fetch_daily_tles.EXIT_OK

    scheduler = scheduler_cls.return_value
    assert 'next_run_time' in scheduler.add_job.call_args.kwargs
    scheduler.start.assert_called_once()
