"""
CLI: ``depot queue``: notification queue and history.
"""

from __future__ import annotations

import typer

from depot.cli.utils import fail, get_substrate, output_value
from depot.core.errors import DepotError
from depot.core.settings import get_settings

app = typer.Typer(no_args_is_help=True)


@app.command("size")
def size(json_out: bool = typer.Option(False, "--json")) -> None:
    """Number of pending notifications."""
    from depot.notifications.queue import NotificationsQueue

    try:
        pending = NotificationsQueue(get_substrate()).size()
    except DepotError as exc:
        raise fail(exc) from exc
    output_value("pending", pending, as_json=json_out)


@app.command("purge-history")
def purge_history(
    days: int | None = typer.Option(None, "--days", "-d", help="Retention in days (default from settings)"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Delete history rows older than the retention window."""
    from depot.notifications.history import Notifications

    retention = days if days is not None else get_settings().notifications_retention_days
    try:
        deleted = Notifications(get_substrate()).delete_old_notifications(retention)
    except DepotError as exc:
        raise fail(exc) from exc
    output_value("deleted", deleted, as_json=json_out)
