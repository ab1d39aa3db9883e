"""
Orbit History Backend Application
Flask application entry point with database initialization and API routes.
"""
import atexit
import logging
import os

from flask import Flask, current_app, jsonify
from flask_cors import CORS
from flask_migrate import Migrate

from config import config
from models import db
from services.sync_service import SyncService
from utils.logging_util import configure_logging

logger = logging.getLogger(__name__)


def create_app(config_name=None, sync_service=None):
    """
    Application factory function.

    Args:
        config_name: Configuration name ('development', 'production', 'testing' or 'default')
        sync_service: Optional pre-built SyncService (tests inject one with a fake session)

    Returns:
        Flask application instance
    """
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'default')

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

    # Set dynamic engine options based on database type
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = config[config_name].get_engine_options(
        app.config['SQLALCHEMY_DATABASE_URI']
    )

    # Initialize extensions
    db.init_app(app)
    Migrate(app, db)

    # One Space-Track session per app, shared by routes and the scheduler
    app.extensions['sync_service'] = sync_service or SyncService.from_config(app.config)

    # Enable CORS
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization", "X-User-Id"]
        }
    })

    # Register blueprints
    from routes.satellite_routes import satellite_bp
    from routes.public_routes import public_bp

    app.register_blueprint(satellite_bp)
    app.register_blueprint(public_bp)

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint for monitoring."""
        return jsonify({
            'status': 'ok',
            'message': 'Orbit history API is running',
            'version': '1.0.0',
            'data_source': 'space-track.org',
        })

    @app.route('/api/scheduler/status', methods=['GET'])
    def scheduler_status():
        """Get scheduler status, session state and the last sync report."""
        from services.scheduler_service import get_scheduler_status
        status = get_scheduler_status()
        status['sync'] = current_app.extensions['sync_service'].status()
        return jsonify(status)

    @app.route('/api/scheduler/trigger-update', methods=['POST'])
    def trigger_update():
        """Manually trigger a TLE sync."""
        from services.scheduler_service import run_sync_job, scheduler, trigger_manual_update
        app_obj = current_app._get_current_object()
        if scheduler.running:
            trigger_manual_update(app_obj)
            return jsonify({'status': 'success', 'message': 'TLE sync triggered'})

        report = run_sync_job(app_obj)
        return jsonify({'status': 'success', 'message': 'TLE sync finished', 'report': report.to_dict()})

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'status': 'error', 'message': 'Resource not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'status': 'error', 'message': 'Internal server error'}), 500

    return app


def init_database(app):
    """Initialize database and create tables."""
    with app.app_context():
        db.create_all()
        logger.info("Database tables created")


def start_scheduler(app):
    """Start background scheduler when enabled."""
    if not app.config.get('SYNC_SCHEDULER_ENABLED'):
        logger.info("Background TLE sync disabled")
        return

    from services.scheduler_service import initialize_scheduler, shutdown_scheduler
    initialize_scheduler(app)
    atexit.register(shutdown_scheduler)


if __name__ == '__main__':
    app = create_app()
    init_database(app)
    start_scheduler(app)

    port = int(os.environ.get('PORT', 3000))
    logger.info("Orbit history API listening on port %s", port)
    app.run(
        host='0.0.0.0',
        port=port,
        debug=False,
        use_reloader=False
    )
