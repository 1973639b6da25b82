"""box-collection - inspect and maintain a local box collection."""

import logging
import sys
from pathlib import Path

import click
from rich.table import Table

from .collection import BoxCollection
from .console import console
from .console import err_console
from .errors import BoxCollectionError
from .logging_setup import init_json_logging
from .models import AUTO
from .models import AddOptions
from .settings import CollectionSettings
from .settings import build_collection
from .utils.error_format import escape_markup
from .utils.error_format import format_error_message

logger = logging.getLogger(__name__)


def _collection(ctx: click.Context) -> BoxCollection:
    return ctx.obj["collection"]


def _fail(e: BaseException) -> None:
    err_console.print(f"[red]✗[/red] {escape_markup(format_error_message(e))}")
    sys.exit(1)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Settings file (default: ~/.vagrant.d/box-collection.yaml)",
)
@click.option(
    "--root",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Collection root, overriding settings",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, root: Path | None):
    """Inspect and maintain a local box collection.

    Examples:

        \b
        # List installed boxes
        box-collection list

        \b
        # Add a box archive
        box-collection add ./ubuntu.box hashicorp/bionic64 1.0.0 -p virtualbox

        \b
        # Find the newest 1.x box
        box-collection find hashicorp/bionic64 -p virtualbox --version "~> 1.0"
    """
    try:
        settings = CollectionSettings.load(config_path)
    except (OSError, ValueError) as e:
        _fail(e)
    if root is not None:
        settings.collection_root = root

    init_json_logging(settings.log_path, settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["collection"] = build_collection(settings)


@cli.command(name="list")
@click.pass_context
def list_boxes(ctx: click.Context):
    """List installed boxes."""
    entries = _collection(ctx).all()
    if not entries:
        console.print("[yellow]No boxes installed.[/yellow]")
        return

    table = Table(title="Installed Boxes", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="green")
    table.add_column("Version")
    table.add_column("Provider")
    table.add_column("Architecture", style="dim")
    for entry in entries:
        table.add_row(entry.name, entry.version, entry.provider, entry.architecture or "-")
    console.print(table)


@cli.command()
@click.argument("name")
@click.option("--provider", "-p", "providers", multiple=True, required=True, help="Acceptable provider")
@click.option("--version", "version", default="", help='Version constraints, e.g. "~> 1.0"')
@click.option("--architecture", default=AUTO, show_default=True, help="Architecture or 'auto'")
@click.pass_context
def find(ctx: click.Context, name: str, providers: tuple[str, ...], version: str, architecture: str):
    """Find the newest box matching NAME and constraints."""
    try:
        box = _collection(ctx).find(name, list(providers), version, architecture)
    except BoxCollectionError as e:
        _fail(e)

    if box is None:
        console.print(f"[yellow]Box not found:[/yellow] {escape_markup(name)}")
        sys.exit(1)

    console.print(f"[green]✓[/green] {escape_markup(box.name)} v{box.version} ({box.provider})")
    console.print(f"  Location: {escape_markup(box.directory)}")
    if box.architecture:
        console.print(f"  Architecture: {box.architecture}")
    if box.metadata_url:
        console.print(f"  Metadata URL: {escape_markup(box.metadata_url)}")


@cli.command()
@click.argument("path", type=click.Path(path_type=Path, exists=True, dir_okay=False))
@click.argument("name")
@click.argument("version")
@click.option("--provider", "-p", "providers", multiple=True, help="Acceptable provider (repeatable)")
@click.option("--architecture", default=None, help="Architecture to store under, or 'auto'")
@click.option("--force", is_flag=True, help="Replace an existing box")
@click.option("--metadata-url", default=None, help="Metadata URL to remember for this box")
@click.pass_context
def add(
    ctx: click.Context,
    path: Path,
    name: str,
    version: str,
    providers: tuple[str, ...],
    architecture: str | None,
    force: bool,
    metadata_url: str | None,
):
    """Add the box archive at PATH as NAME at VERSION."""
    options = AddOptions(
        providers=list(providers) or None,
        architecture=architecture,
        force=force,
        metadata_url=metadata_url,
    )
    try:
        box = _collection(ctx).add(path, name, version, options)
    except BoxCollectionError as e:
        _fail(e)

    if box is None:
        _fail(RuntimeError(f"Box {name} was added but could not be found afterwards"))
    console.print(f"[green]✓[/green] Added {escape_markup(box.name)} v{box.version} ({box.provider})")


@cli.command()
@click.argument("name")
@click.pass_context
def clean(ctx: click.Context, name: str):
    """Remove NAME's directory if no versions remain."""
    try:
        cleaned = _collection(ctx).clean(name)
    except BoxCollectionError as e:
        _fail(e)

    if cleaned:
        console.print(f"[green]✓[/green] Cleaned {escape_markup(name)}")
    else:
        console.print(f"[yellow]{escape_markup(name)} still has installed versions; nothing removed.[/yellow]")


@cli.command()
@click.confirmation_option(prompt="Rewrite the whole collection into the versioned layout?")
@click.pass_context
def upgrade(ctx: click.Context):
    """Upgrade a pre-versioning collection in place."""
    collection = _collection(ctx)
    try:
        collection.upgrade_v1_1_v1_5()
    except (BoxCollectionError, OSError) as e:
        _fail(e)
    console.print(f"[green]✓[/green] Upgraded {escape_markup(collection.directory)}")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
