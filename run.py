#!/usr/bin/env python3
"""
Development server runner for service mode.

Exports run in-process on the SCHEDULE_CRON schedule (UTC by default, see
SCHEDULER_TIMEZONE). Without SCHEDULE_CRON only the status API is served;
use `sqlexport export run` for a one-shot export.
"""
import os
from sqlexport import create_app

if __name__ == '__main__':
    app = create_app(os.environ.get('FLASK_ENV', 'development'))

    if app.config.get('SCHEDULE_CRON'):
        app.logger.info(f"Export schedule: {app.config['SCHEDULE_CRON']} ({app.config['SCHEDULER_TIMEZONE']})")
    else:
        app.logger.warning("SCHEDULE_CRON is not set, no exports will be scheduled")

    port = int(os.environ.get('PORT', 5000))
    app.run(host=os.environ.get('HOST', '127.0.0.1'), port=port, debug=app.config['DEBUG'])
