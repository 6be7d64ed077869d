# Gunicorn configuration for sqlexport
# Only one worker may own the export schedule

import os
import logging

logger = logging.getLogger('gunicorn.error')

bind = os.environ.get('GUNICORN_BIND', '0.0.0.0:5000')
workers = int(os.environ.get('GUNICORN_WORKERS', '2'))

# The app must be imported after post_fork has set SCHEDULER_WORKER
preload_app = False

# Gunicorn numbers workers from 1 in spawn order
SCHEDULER_WORKER_AGE = 1


def post_fork(server, worker):
    """
    Called in the worker process before the app is loaded.

    Designates the first spawned worker as the scheduler owner so a
    scheduled export never runs twice.

    Args:
        server: Gunicorn arbiter
        worker: Gunicorn worker instance (uses 'age' attribute: 1, 2, ...)
    """
    if worker.age == SCHEDULER_WORKER_AGE:
        os.environ['SCHEDULER_WORKER'] = 'true'
        logger.info(f"Worker PID {worker.pid} (age={worker.age}): export scheduler owner")
    else:
        os.environ['SCHEDULER_WORKER'] = 'false'
        logger.info(f"Worker PID {worker.pid} (age={worker.age}): HTTP only")
