"""
Database initialization script.
Creates all tables and optionally registers satellites to track.
"""
import argparse
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app import create_app, init_database
from services.tle_repository import TLERepository


def track_satellites(app, norad_ids, user_id):
    """Register satellites for an owner; the next sync fetches them."""
    repository = TLERepository()
    with app.app_context():
        for norad_id in norad_ids:
            satellite = repository.track(norad_id, user_id)
            print(f"  Tracking {satellite.norad_id} for {user_id}")
    print("[OK] Satellites registered")


def main(argv=None):
    """Main initialization function."""
    parser = argparse.ArgumentParser(description='Initialize orbit history database')
    parser.add_argument('--config', help='Configuration name (development, production)')
    parser.add_argument('--track', type=int, nargs='+', metavar='NORAD_ID',
                        help='NORAD IDs to start tracking')
    parser.add_argument('--user', help='Owner id for --track')
    parser.add_argument('--sync', action='store_true', help='Run one TLE sync afterwards')

    args = parser.parse_args(argv)
    if args.track and not args.user:
        parser.error('--track requires --user')

    app = create_app(args.config)

    print("=" * 50)
    print("Orbit History Database Initialization")
    print("=" * 50)

    # Always create tables
    init_database(app)
    print("[OK] Database tables created")

    if args.track:
        track_satellites(app, args.track, args.user)

    if args.sync:
        from services.scheduler_service import run_sync_job
        report = run_sync_job(app)
        print(f"[OK] Sync {report.status}: {report.stored} stored, "
              f"{report.unchanged} unchanged, {report.skipped} skipped")

    print("=" * 50)
    print("Initialization complete!")
    print("=" * 50)


if __name__ == '__main__':
    main()
