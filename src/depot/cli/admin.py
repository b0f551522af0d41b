"""
CLI: ``depot admin``: index and collection maintenance.
"""

from __future__ import annotations

import typer

from depot.cli.utils import console, fail, get_substrate, output_names, output_value
from depot.core.errors import DepotError

app = typer.Typer(no_args_is_help=True)


def _admin():
    from depot.store.admin import AdminStore, default_registry

    return AdminStore(get_substrate(), default_registry())


@app.command("collections")
def collections(json_out: bool = typer.Option(False, "--json")) -> None:
    """List the registered collections."""
    output_names(_admin().get_all_collections(), as_json=json_out, title="Collections")


@app.command("indexes")
def indexes(json_out: bool = typer.Option(False, "--json")) -> None:
    """List the indexes present in the substrate."""
    try:
        names = _admin().get_all_indexes()
    except DepotError as exc:
        raise fail(exc) from exc
    output_names(names, as_json=json_out, title="Indexes")


@app.command("create-indexes")
def create_indexes(json_out: bool = typer.Option(False, "--json")) -> None:
    """Create any missing collection index; existing indexes are left alone."""
    try:
        names = _admin().create_indexes()
    except DepotError as exc:
        raise fail(exc) from exc
    output_names(names, as_json=json_out, title="Indexes")


@app.command("drop-index")
def drop_index(
    collection: str = typer.Argument(..., help="Collection whose index is dropped"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Drop a collection's index, keeping its documents."""
    try:
        name = _admin().delete_index(collection)
    except DepotError as exc:
        raise fail(exc) from exc
    output_value("dropped", name, as_json=json_out)


@app.command("drop-collection")
def drop_collection(
    collection: str = typer.Argument(..., help="Collection to empty"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Delete every document of a collection."""
    if not yes and not typer.confirm(f"Delete every document in {collection!r}?"):
        console.print("[dim]Aborted.[/dim]")
        raise typer.Exit(code=1)
    try:
        deleted = _admin().delete_collection(collection)
    except DepotError as exc:
        raise fail(exc) from exc
    output_value("deleted", deleted, as_json=json_out)
