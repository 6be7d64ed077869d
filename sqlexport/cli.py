"""
Command line interface.

One-shot export runs for external schedulers (cron, automation runbooks):

    sqlexport export run
    sqlexport export run --config development --retention-days 14
    flask --app sqlexport export run

Any run failure is reported on stderr and the process exits non-zero.
"""

import click
from flask.cli import AppGroup, FlaskGroup, pass_script_info

from sqlexport import create_app
from sqlexport.backup.errors import ExportJobError
from sqlexport.backup.executor import run_export
from sqlexport.backup.settings import ExportSettings
from sqlexport.config import config
from sqlexport.utils.redaction import secret_redactor


export_group = AppGroup('export', help='Database export commands.')


@export_group.command('run', with_appcontext=False)
@click.option('--config', 'config_name', type=click.Choice(sorted(config)), default=None,
              help='Configuration to load instead of FLASK_ENV.')
@click.option('--retention-days', type=int, default=None,
              help='Override RETENTION_DAYS for this run (<= 0 disables cleanup).')
@pass_script_info
def run_command(info, config_name, retention_days):
    """Export the configured database and apply the retention policy."""
    if config_name:
        app = create_app(config_name, enable_scheduler=False)
    else:
        app = info.load_app()

    with app.app_context():
        try:
            settings = ExportSettings.from_config(app.config, retention_days=retention_days)
            result = run_export(settings)
        except ExportJobError as e:
            raise click.ClickException(secret_redactor.redact(str(e))) from e

    click.echo(f"Export {result.status.state}: {result.blob_uri}")
    if result.deleted_blobs:
        click.echo(f"Removed {len(result.deleted_blobs)} expired backup(s)")


def _create_cli_app():
    return create_app(enable_scheduler=False)


cli = FlaskGroup(create_app=_create_cli_app, add_default_commands=False,
                 help='Azure SQL export to blob storage.')
cli.add_command(export_group)
