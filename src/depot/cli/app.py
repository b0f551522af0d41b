"""
Root Typer application for the depot CLI.
"""

from __future__ import annotations

import sys

import typer
from typer import Typer

from depot.core.logging import configure_logging
from depot.core.settings import get_settings

app = Typer(
    name="depot",
    help="depot: metadata store administration.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from depot import __version__

        typer.echo(f"metadata-depot {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """depot CLI: manage indexes, collections and the notification queue."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json", stream=sys.stderr)


# ── Sub-command registration ─────────────────────────────────────────────

from depot.cli.admin import app as admin_app  # noqa: E402
from depot.cli.queue import app as queue_app  # noqa: E402

app.add_typer(admin_app, name="admin", help="Index and collection maintenance.")
app.add_typer(queue_app, name="queue", help="Notification queue and history.")
