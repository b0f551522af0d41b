"""
CLI utility helpers: output formatting and substrate access.
"""

from __future__ import annotations

import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from depot.core.errors import DepotError
from depot.core.settings import get_settings
from depot.store.connection import create_substrate
from depot.store.substrate import DocumentSubstrate

console = Console()
err_console = Console(stderr=True)


# ── Substrate helper ─────────────────────────────────────────────────────


def get_substrate() -> DocumentSubstrate:
    """Substrate configured by ``DEPOT_*`` settings."""
    return create_substrate(get_settings())


# ── Output helpers ───────────────────────────────────────────────────────


def fail(exc: DepotError) -> typer.Exit:
    """Print ``exc`` to stderr and return the exit to raise."""
    err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {exc.message}")
    return typer.Exit(code=1)


def output_names(names: list[str], *, as_json: bool = False, title: str = "") -> None:
    """Render a list of names as a single-column table."""
    if as_json:
        console.print_json(json.dumps(names))
        return
    if not names:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    table.add_column("name", overflow="fold")
    for name in names:
        table.add_row(name)
    console.print(table)


def output_value(key: str, value: Any, *, as_json: bool = False) -> None:
    if as_json:
        console.print_json(json.dumps({key: value}, default=str))
        return
    console.print(f"  [cyan]{key}[/cyan]: {value}")
