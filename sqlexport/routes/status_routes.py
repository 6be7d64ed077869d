"""
Status routes - scheduler diagnostics and last run summary.
"""

from flask import Blueprint, jsonify

from sqlexport import scheduler as scheduler_module


bp = Blueprint('status', __name__, url_prefix='/api/status')


@bp.route('/scheduler', methods=['GET'])
def get_scheduler_status():
    """
    Get scheduler state and scheduled jobs.

    Returns:
        JSON with initialized/running flags and job list
    """
    return jsonify(scheduler_module.get_scheduler_diagnostics())


@bp.route('/last-run', methods=['GET'])
def get_last_run():
    """
    Get the summary of the last scheduled export run.

    Returns:
        JSON run summary, or 404 if nothing has run in this process
    """
    if scheduler_module.last_run is None:
        return jsonify({'error': 'No export has run yet'}), 404

    return jsonify(scheduler_module.last_run)
