# Overview: Flask CLI command groups for bootstrap, sync execution, and maintenance.

# backend/possync/cli.py
# Commands Legend:
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to possync (PowerShell: $env:FLASK_APP="possync").
# - Set DATABASE_URL (reporting store) and SOURCE_DATABASE_URL (POS store).
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create the reporting store tables (never touches the POS store).
#
# Sync:
# - python -m flask sync run-once
#   Run one batch (tables, orders, expenses, cash) and print counts.
# - python -m flask sync worker [--interval 30]
#   Run the polling loop until SIGINT/SIGTERM.
# - python -m flask sync runs [--limit 10]
#   List recent batches from the run log.
#
# Maintenance:
# - python -m flask maintenance cleanup-sync-log --retention-days 90
#   Delete finished run log entries older than the retention window.

import signal
import threading

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import maintenance_service, sync_log_service
from .services.scheduler import SyncScheduler
from .services.sync_context import SyncError
from .services.sync_service import SyncOrchestrator


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create reporting store tables (idempotent)."""
    db.create_all(bind_key=None)
    click.echo("PASS Reporting store tables created")


@click.group('sync')
def sync_group():
    """Sync engine commands."""


@sync_group.command('run-once')
@with_appcontext
def run_once_cli():
    """Run a single sync batch in the foreground."""
    orchestrator = SyncOrchestrator()
    try:
        result = orchestrator.run_once()
    except SyncError as exc:
        click.echo(f"FAIL {exc}")
        _close_failed_envelope(orchestrator, str(exc))
        raise SystemExit(1)
    except Exception as exc:
        current_app.logger.exception("Sync batch failed")
        click.echo(f"FAIL Sync batch {orchestrator.batch_id} failed: {type(exc).__name__}: {exc}")
        _close_failed_envelope(orchestrator, f"{type(exc).__name__}: {exc}")
        raise SystemExit(1)

    click.echo(f"PASS Sync batch {result.batch_id} completed")
    for job_name, count in result.counts.items():
        click.echo(f"     {job_name:<15} {count}")


def _close_failed_envelope(orchestrator: SyncOrchestrator, message: str) -> None:
    if orchestrator.batch_id is None:
        return
    try:
        db.session.rollback()
        sync_log_service.finish_batch(
            orchestrator.batch_id, status=sync_log_service.STATUS_ERROR, message=message
        )
    except Exception:  # noqa: BLE001
        current_app.logger.exception(
            "Could not close run log envelope of batch %s", orchestrator.batch_id
        )
        click.echo(f"WARN  Run log envelope of batch {orchestrator.batch_id} left open")


@sync_group.command('worker')
@click.option('--interval', type=int, default=None, help='Seconds between batches (default: SYNC_INTERVAL_SECONDS)')
@with_appcontext
def worker_cli(interval):
    """Run the sync loop until interrupted."""
    app = current_app._get_current_object()
    stop_event = threading.Event()

    def _request_stop(signum, frame):
        click.echo(f"\nWARN  Signal {signum} received, stopping after current step...")
        stop_event.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    scheduler = SyncScheduler(app, interval_seconds=interval, stop_event=stop_event)
    click.echo(f"START Sync worker (interval {scheduler.interval_seconds}s)")
    scheduler.run_forever()
    click.echo(f"DONE Sync worker stopped: {scheduler.cycles} cycle(s), {scheduler.failures} failed")


@sync_group.command('runs')
@click.option('--limit', type=click.IntRange(min=1), default=10, show_default=True)
@with_appcontext
def list_runs_cli(limit):
    """List recent sync batches."""
    batches = sync_log_service.list_recent_batches(limit=limit)
    if not batches:
        click.echo("No sync batches found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'Batch':<38} {'Status':<10} {'Started':<22} {'Finished':<22} {'Tasks'}")
    click.echo("="*100)
    for batch in batches:
        tasks = ", ".join(f"{t['job_name']}={t['status']}" for t in batch["tasks"]) or "-"
        click.echo(
            f"{batch['batch_id']:<38} {batch['status']:<10} {batch['started_at'] or '-':<22} "
            f"{batch['finished_at'] or '-':<22} {tasks}"
        )
    click.echo("="*100 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sync-log')
@click.option('--retention-days', type=int, default=None, help='Default: SYNC_LOG_RETENTION_DAYS')
@with_appcontext
def cleanup_sync_log_cli(retention_days):
    """
    Delete finished sync run log entries older than retention window.
    """
    if retention_days is None:
        retention_days = int(current_app.config.get("SYNC_LOG_RETENTION_DAYS", 90))
    deleted = maintenance_service.cleanup_sync_log(retention_days=retention_days)
    click.echo(f"Deleted {deleted} sync log entries older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(sync_group)
    app.cli.add_command(maintenance_group)
