#!/usr/bin/env python3
"""
TLE Sync Worker

Runs the TLE sync outside the web process.

Modes:
- one-shot (default): run one sync invocation and exit. Exit status is 0
  when the pass completed (even with skipped objects), 2 when the
  Space-Track credentials are missing, and 1 when --exit-on-failure is
  given and the job gave up after its retries.
- service (--serve): run a pass now, then every SYNC_INTERVAL_HOURS until
  interrupted.

Usage:
    cd backend
    python jobs/fetch_daily_tles.py [--serve] [--exit-on-failure] [--config NAME]
"""
import argparse
import logging
import sys
from pathlib import Path

# Add backend to path
backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from apscheduler.schedulers.blocking import BlockingScheduler

from app import create_app, init_database
from services.scheduler_service import add_sync_job, run_sync_job

logger = logging.getLogger('jobs.fetch_daily_tles')

EXIT_OK = 0
EXIT_SYNC_FAILED = 1
EXIT_SETUP_ERROR = 2


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Fetch the latest TLEs for every tracked satellite")
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Keep running and repeat the sync every SYNC_INTERVAL_HOURS"
    )
    parser.add_argument(
        "--exit-on-failure",
        action="store_true",
        help="Exit non-zero when the sync gives up after its retries (one-shot mode)"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Configuration name (development, production, testing). Default: FLASK_ENV"
    )
    return parser.parse_args(argv)


def run_once(app, exit_on_failure=False):
    """One sync invocation; returns the process exit status."""
    report = run_sync_job(app)
    if report.failed:
        logger.error("TLE sync failed: %s", report.error)
        return EXIT_SYNC_FAILED if exit_on_failure else EXIT_OK
    return EXIT_OK


def serve(app):
    """Run the sync now and then on a fixed interval, until interrupted."""
    interval_hours = app.config.get('SYNC_INTERVAL_HOURS', 12)
    blocking = BlockingScheduler(timezone='utc')
    add_sync_job(blocking, app, interval_hours, run_now=True)
    logger.info("TLE sync worker started, interval %sh", interval_hours)
    try:
        blocking.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("TLE sync worker stopped")
    return EXIT_OK


def main(argv=None, app=None):
    args = parse_args(argv)
    app = app or create_app(args.config)

    sync_service = app.extensions['sync_service']
    if not sync_service.session.has_credentials:
        logger.error("SPACETRACK_USER or SPACETRACK_PASS not set")
        return EXIT_SETUP_ERROR

    init_database(app)

    if args.serve:
        return serve(app)
    return run_once(app, exit_on_failure=args.exit_on_failure)


if __name__ == '__main__':
    sys.exit(main())
