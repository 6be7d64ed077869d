import os
import logging
from logging.handlers import RotatingFileHandler
from flask import Flask

from sqlexport.utils.redaction import RedactingFormatter, secret_redactor


# Azure SDK loggers emit every HTTP request/response at INFO
NOISY_LOGGERS = ('azure', 'azure.core.pipeline.policies.http_logging_policy', 'azure.identity')


def configure_logging(app):
    """Configure application logging"""

    log_dir = app.config['LOG_DIR']
    os.makedirs(log_dir, exist_ok=True)

    # Set log level based on environment
    log_level = logging.DEBUG if app.config.get('DEBUG', False) else logging.INFO

    # Register secrets before any handler formats a record
    secret_redactor.register(
        app.config.get('DATABASE_ADMIN_PASSWORD'),
        app.config.get('STORAGE_KEY')
    )

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(RedactingFormatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    ))

    # File handler
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, 'sqlexport.log'),
        maxBytes=10485760,  # 10MB
        backupCount=10
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(RedactingFormatter(
        '[%(asctime)s] %(levelname)s [%(name)s.%(funcName)s:%(lineno)d] %(message)s'
    ))

    # Configure root logger
    logging.basicConfig(level=log_level, handlers=[console_handler, file_handler])

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    app.logger.setLevel(log_level)

    app.logger.info(f"Logging configured (level: {logging.getLevelName(log_level)})")


def create_app(config_name=None, enable_scheduler=True):
    """
    Flask application factory

    Args:
        config_name: Key into sqlexport.config.config (defaults to FLASK_ENV)
        enable_scheduler: Allow this process to run the in-process schedule;
            one-shot CLI runs pass False
    """
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'production')

    from sqlexport.config import config
    app.config.from_object(config[config_name])

    # Configure logging
    configure_logging(app)

    # Register blueprints
    from sqlexport.routes import status_routes
    app.register_blueprint(status_routes.bp)

    # Health check endpoint
    @app.route('/health')
    def health():
        return {'status': 'healthy'}, 200

    # CLI commands
    from sqlexport.cli import export_group
    app.cli.add_command(export_group)

    # Initialize and start scheduler (only in designated worker or development child process)
    from sqlexport.scheduler import init_scheduler, start_scheduler, stop_scheduler
    import atexit

    is_reloader_child = os.environ.get('WERKZEUG_RUN_MAIN') == 'true'
    is_development = app.config.get('DEBUG', False)
    is_scheduler_worker = os.environ.get('SCHEDULER_WORKER', 'true').lower() == 'true'

    # Scheduler initialization logic:
    # - Development mode: Only in Flask reloader child process (not parent)
    # - Production mode: Only in designated scheduler worker (SCHEDULER_WORKER=true)
    if is_development:
        should_init_scheduler = is_reloader_child
    else:
        should_init_scheduler = is_scheduler_worker

    if not enable_scheduler or not app.config.get('SCHEDULE_CRON'):
        should_init_scheduler = False

    if should_init_scheduler:
        app.logger.info(f"Initializing scheduler (cron: {app.config['SCHEDULE_CRON']})")
        init_scheduler(app)
        start_scheduler()

        # Register cleanup function to stop scheduler on app shutdown
        atexit.register(stop_scheduler)
    else:
        app.logger.info("Scheduler initialization skipped in this process")

    return app
