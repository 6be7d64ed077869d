"""
APScheduler configuration for sqlexport.

Manages:
- The scheduled export run (cron expression from SCHEDULE_CRON)
- Last-run bookkeeping for the status endpoint
"""

import logging
from datetime import datetime, timezone

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from sqlexport.backup.errors import ExportJobError
from sqlexport.backup.executor import run_export
from sqlexport.backup.settings import ExportSettings
from sqlexport.utils.redaction import secret_redactor


logger = logging.getLogger(__name__)

EXPORT_JOB_ID = 'scheduled_export'

# Global scheduler instance and Flask app reference
scheduler = None
flask_app = None
last_run = None


def init_scheduler(app):
    """
    Initialize and configure APScheduler.

    Args:
        app: Flask app instance
    """
    global scheduler, flask_app

    if scheduler is not None:
        return scheduler

    # Store Flask app reference for use in background threads
    flask_app = app

    # Runs never overlap: one worker, one instance
    scheduler = BackgroundScheduler(
        jobstores={'default': MemoryJobStore()},
        executors={'default': ThreadPoolExecutor(max_workers=1)},
        job_defaults={
            'coalesce': True,
            'max_instances': 1,
            'misfire_grace_time': 300
        },
        timezone=app.config.get('SCHEDULER_TIMEZONE', 'UTC')
    )

    cron = app.config.get('SCHEDULE_CRON')
    if cron:
        scheduler.add_job(
            func=_execute_export_wrapper,
            trigger=CronTrigger.from_crontab(cron, timezone='UTC'),
            id=EXPORT_JOB_ID,
            name=f"Export: {app.config.get('DATABASE_NAME')}",
            replace_existing=True
        )

    return scheduler


def start_scheduler():
    """
    Start the APScheduler.

    Should be called after Flask app is initialized.
    """
    if scheduler is None:
        raise RuntimeError("Scheduler not initialized. Call init_scheduler() first.")

    if not scheduler.running:
        scheduler.start()
        logger.info(f"APScheduler started (state={scheduler.state})")

        for job in scheduler.get_jobs():
            next_run = job.next_run_time.isoformat() if job.next_run_time else 'N/A'
            logger.info(f"  - {job.id}: {job.name} (next run: {next_run})")
    else:
        logger.info(f"Scheduler already running (state={scheduler.state})")


def stop_scheduler():
    """Stop the APScheduler."""
    if scheduler and scheduler.running:
        scheduler.shutdown()
        logger.info("APScheduler stopped")


def _execute_export_wrapper():
    """
    Run one export inside the Flask app context.

    Failures are recorded in last_run; the scheduler keeps running so the
    next scheduled run still happens.
    """
    global last_run

    started_at = datetime.now(timezone.utc)

    with flask_app.app_context():
        try:
            settings = ExportSettings.from_config(flask_app.config)
            result = run_export(settings)
            last_run = dict(result.to_dict(), error=None)
            logger.info(f"Scheduled export completed with status: {result.status.state}")
        except ExportJobError as e:
            last_run = {
                'status': 'Error',
                'error': secret_redactor.redact(str(e)),
                'started_at': started_at.isoformat(),
                'completed_at': datetime.now(timezone.utc).isoformat()
            }
            logger.error(f"Scheduled export failed: {e}")


def get_scheduled_jobs() -> list:
    """
    Get list of all scheduled jobs.

    Returns:
        List of dicts with job information
    """
    if scheduler is None:
        return []

    return [
        {
            'id': job.id,
            'name': job.name,
            'next_run': job.next_run_time.isoformat() if job.next_run_time else None,
            'trigger': str(job.trigger)
        }
        for job in scheduler.get_jobs()
    ]


def get_scheduler_diagnostics() -> dict:
    """
    Get scheduler state for the status endpoint.

    Returns:
        Dict with scheduler state and jobs
    """
    if scheduler is None:
        return {
            'initialized': False,
            'running': False,
            'jobs': []
        }

    return {
        'initialized': True,
        'running': scheduler.running,
        'state': str(scheduler.state),
        'jobs': get_scheduled_jobs()
    }
