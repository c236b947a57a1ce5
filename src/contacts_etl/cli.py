"""Command line interface for the contacts loader."""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from tabulate import tabulate

from .acquittal import AcquittalAction
from .cartography import CartographyError, format_cartography
from .config import Property
from .context import ApplicationContext
from .loader import FlushMode, load_contacts, read_mutations

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)

app = typer.Typer(help="Contacts store loader")
row_app = typer.Typer(help="Row inspection commands")
app.add_typer(row_app, name="row")
cartography_app = typer.Typer(help="Cartography reference commands")
app.add_typer(cartography_app, name="cartography")
files_app = typer.Typer(help="Output file maintenance")
app.add_typer(files_app, name="files")


def _context(config: Optional[str]) -> ApplicationContext:
    if config:
        return ApplicationContext.from_environment(config)
    return ApplicationContext.get_instance()


@app.command()
def load(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON lines of row mutations"),
    mode: FlushMode = typer.Option(FlushMode.PLAIN, "--mode", case_sensitive=False),
    acquittal_table: Optional[str] = typer.Option(None, "--acquittal-table"),
    config: Optional[str] = typer.Option(None, "--config", envvar="CONTACTS_CONFIG_PATH"),
) -> None:
    """Buffer mutations from SOURCE and flush them to the contacts tables."""
    try:
        mutations = list(read_mutations(source))
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)

    context = _context(config)
    try:
        logger.info("Loading %s mutation(s) from %s mode=%s", len(mutations), source, mode.value)
        flushed = load_contacts(context, mutations, mode=mode, acquittal_table=acquittal_table)
    finally:
        context.close_context()
    if not flushed:
        typer.echo("Flush did not complete; see logs for details.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Flushed {len(mutations)} mutation(s) in {mode.value} mode.")


@row_app.command("show")
def row_show(
    row_key: str = typer.Argument(...),
    table: Optional[str] = typer.Option(None, "--table", help="Defaults to the contacts table"),
    output_format: str = typer.Option("table", "--format", help="table or json"),
    config: Optional[str] = typer.Option(None, "--config", envvar="CONTACTS_CONFIG_PATH"),
) -> None:
    """Print every stored version of one row."""
    context = _context(config)
    try:
        store = context.store()
        if not store.connected:
            typer.echo("Store is not reachable.", err=True)
            raise typer.Exit(code=1)
        store.set_table(table or context.get_property(Property.STORE_CONTACTS_TABLE))
        snapshot = store.get_row(row_key)
    finally:
        context.close_context()

    if snapshot.is_empty:
        typer.echo(f"No row found for {row_key}.")
        raise typer.Exit(code=0)
    rows = [
        [family, qualifier, version.timestamp, version.value]
        for (family, qualifier), versions in sorted(snapshot.versions.items())
        for version in versions
    ]
    if output_format == "json":
        payload = [
            {"family": r[0], "qualifier": r[1], "timestamp": r[2], "value": r[3]} for r in rows
        ]
        typer.echo(json.dumps(payload, indent=2))
        return
    typer.echo(
        tabulate(rows, headers=["family", "qualifier", "timestamp", "value"], tablefmt="plain")
    )


@cartography_app.command("show")
def cartography_show(
    output_format: str = typer.Option("table", "--format", help="table or json"),
    config: Optional[str] = typer.Option(None, "--config", envvar="CONTACTS_CONFIG_PATH"),
) -> None:
    """Print the cartography reference entries."""
    context = _context(config)
    try:
        cartography = context.cartography()
    except CartographyError as exc:
        typer.echo(f"Cartography unavailable: {exc}", err=True)
        raise typer.Exit(code=1)
    finally:
        context.close_context()
    typer.echo(format_cartography(cartography, output_format=output_format))


@files_app.command("dedupe")
def files_dedupe(
    paths: List[str] = typer.Argument(..., help="Paths relative to the filesystem root"),
    config: Optional[str] = typer.Option(None, "--config", envvar="CONTACTS_CONFIG_PATH"),
) -> None:
    """Remove duplicated lines from output files."""
    context = _context(config)
    try:
        opened = [path for path in paths if context.get_appender(path) is not None]
        context.remove_duplicates_from_files()
    finally:
        context.close_context()
    typer.echo(f"Deduplicated {len(opened)} of {len(paths)} file(s).")
    if len(opened) != len(paths):
        raise typer.Exit(code=1)


@app.command()
def acquit(
    table: str = typer.Argument(..., help="Target table the acquittal refers to"),
    action: AcquittalAction = typer.Argument(..., case_sensitive=False),
    config: Optional[str] = typer.Option(None, "--config", envvar="CONTACTS_CONFIG_PATH"),
) -> None:
    """Write one acquittal row to the reporting database."""
    context = _context(config)
    try:
        written = context.acquit(table, action, datetime.now())
    finally:
        context.close_context()
    if not written:
        raise typer.Exit(code=1)
    typer.echo(f"Acquitted {action.value} for {table}.")


if __name__ == "__main__":
    app()
