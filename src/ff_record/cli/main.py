#!/usr/bin/env python3
"""Main entry point for the ff-record CLI."""

from pathlib import Path
from typing import List, Optional

import typer

from ff_record import __version__
from ff_record.cli.generators import generate_model
from ff_record.config import console, get_settings
from ff_record.exceptions import UsageError

GENERATORS = ("model",)

app = typer.Typer(
    name="ff-record",
    help="Lightweight model and migration generator for ff-record",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        console.print(f"[bold cyan]ff-record[/bold cyan] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
):
    """Generate ff-record models and migrations."""


@app.command("generate")
def generate(
    resource_type: str = typer.Argument(..., metavar="TYPE", help="Resource type (model)"),
    name: str = typer.Argument(..., help="Resource name, e.g. User"),
    fields: Optional[List[str]] = typer.Argument(None, help="Fields like name:string age:integer"),
    models_dir: Path | None = typer.Option(None, "--models-dir", help="Where model modules go"),
    migrations_dir: Path | None = typer.Option(
        None, "--migrations-dir", help="Where migration files go"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing model"),
):
    """Generate resources (model, ...)."""
    if resource_type not in GENERATORS:
        console.print(f"[red]Unknown generator: {resource_type}[/red]")
        raise typer.Exit(1)

    settings = get_settings()
    try:
        generated = generate_model(
            name,
            fields or [],
            models_dir=models_dir or settings.models_dir,
            migrations_dir=migrations_dir or settings.migrations_dir,
            force=force,
        )
    except UsageError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    console.print(f"[green]✅ Created model: {generated.model_path}[/green]")
    console.print(f"[green]✅ Created migration: {generated.migration_path}[/green]")


app.command("g", hidden=True, help="Alias for generate")(generate)


if __name__ == "__main__":
    app()
