"""
Background scheduler for the periodic TLE sync.

The web app runs the sync on a BackgroundScheduler every
SYNC_INTERVAL_HOURS; the standalone worker (jobs/fetch_daily_tles.py)
uses a BlockingScheduler with the same job function.
"""
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

SYNC_JOB_ID = 'tle_sync'

scheduler = BackgroundScheduler(daemon=True, timezone='utc')

# Track update statistics
update_stats = {
    'last_update': None,
    'last_status': None,
    'total_updates': 0,
    'failed_updates': 0,
}


def run_sync_job(app):
    """Run one sync invocation inside the app context and record its outcome."""
    timestamp = datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')
    sync_service = app.extensions['sync_service']

    with app.app_context():
        report = sync_service.run_sync()

    update_stats['last_update'] = timestamp
    update_stats['last_status'] = report.status
    update_stats['total_updates'] += 1
    if report.failed:
        update_stats['failed_updates'] += 1
    return report


def add_sync_job(target_scheduler, app, interval_hours, run_now=False):
    """Register the interval sync job on any APScheduler scheduler."""
    job_options = {
        'hours': interval_hours,
        'id': SYNC_JOB_ID,
        'args': [app],
        'replace_existing': True,
        'max_instances': 1,
        'coalesce': True,
    }
    if run_now:
        job_options['next_run_time'] = datetime.now(timezone.utc)
    target_scheduler.add_job(run_sync_job, 'interval', **job_options)


def initialize_scheduler(app):
    """
    Initialize and start the background scheduler.

    Args:
        app: Flask application instance
    """
    interval_hours = app.config.get('SYNC_INTERVAL_HOURS', 12)
    add_sync_job(scheduler, app, interval_hours)
    scheduler.start()
    logger.info("Scheduler started: TLE sync every %sh", interval_hours)


def shutdown_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shutdown complete")


def get_scheduler_status():
    """Get current scheduler status and statistics."""
    return {
        'running': scheduler.running,
        **update_stats,
        'jobs': [
            {
                'id': job.id,
                'next_run': str(job.next_run_time) if job.next_run_time else None,
                'trigger': str(job.trigger),
            }
            for job in scheduler.get_jobs()
        ],
    }


def trigger_manual_update(app):
    """Trigger an immediate sync (useful for API endpoint)."""
    scheduler.add_job(
        run_sync_job,
        'date',
        args=[app],
        id='manual_update',
        replace_existing=True,
    )
