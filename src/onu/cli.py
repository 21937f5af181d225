"""
CLI: ``onu`` — serve a task directory or inspect what it registers.

    onu serve --path ./tasks --port 8080 --server-path /api/onu
    onu tasks --path ./tasks --json

Options not given on the command line fall back to ``ONU_*`` environment
variables and ``.env`` (see ``onu.settings``).
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from onu._version import __version__
from onu.client import OnuClient
from onu.errors import DiscoveryError
from onu.logging import configure_logging
from onu.settings import OnuSettings

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="onu",
    help="onu — serve tasks to an orchestrator over HTTP.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"onu {__version__}")
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
    """onu CLI — run the task gateway."""


def _settings(path: Path | None, **overrides: object) -> OnuSettings:
    settings = OnuSettings()
    updates = {key: value for key, value in overrides.items() if value is not None}
    if path is not None:
        updates["onu_path"] = path
    if "server_path" in updates:
        updates["server_path"] = str(updates["server_path"]).removeprefix("/")
    return settings.model_copy(update=updates)


@app.command("serve")
def serve(
    path: Path | None = typer.Option(None, "--path", "-p", help="Task root directory"),
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", help="Bind port"),
    server_path: str | None = typer.Option(None, "--server-path", help="Mount path, e.g. /api/onu"),
    debug: bool | None = typer.Option(None, "--debug/--no-debug", help="Reload task files on discovery"),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    """Start the standalone gateway server."""
    settings = _settings(
        path, host=host, server_port=port, server_path=server_path, debug=debug, log_level=log_level
    )
    if settings.onu_path is None:
        err_console.print("[red]No task root.  Pass --path or set ONU_ONU_PATH.[/red]")
        raise typer.Exit(code=2)

    configure_logging(level=settings.log_level, json_format=settings.log_json)
    console.print(
        f"[bold green]Starting onu gateway[/bold green] on "
        f"{settings.host}:{settings.server_port}/{settings.server_path}"
    )
    client = OnuClient.from_settings(settings)
    client.initialize_http_server(log_level=settings.log_level.lower(), configure_logs=False)


@app.command("tasks")
def list_tasks(
    path: Path | None = typer.Option(None, "--path", "-p", help="Task root directory"),
    json_out: bool = typer.Option(False, "--json", help="Print metadata as JSON"),
) -> None:
    """Discover tasks and print what would be registered."""
    settings = _settings(path)
    if settings.onu_path is None:
        err_console.print("[red]No task root.  Pass --path or set ONU_ONU_PATH.[/red]")
        raise typer.Exit(code=2)

    # stdout carries the listing
    configure_logging(level=settings.log_level, json_format=settings.log_json, stream=sys.stderr)
    client = OnuClient.from_settings(settings)
    try:
        client.init()
    except DiscoveryError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    metadata = client.tasks.metadata()
    if json_out:
        typer.echo(json.dumps({"tasks": metadata}, indent=2, default=str))
        return

    if not metadata:
        console.print("[yellow]No tasks found.[/yellow]")
        return

    table = Table(title=f"Tasks in {settings.onu_path}")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("Owner")
    table.add_column("Inputs")
    for entry in metadata:
        table.add_row(entry["slug"], entry["name"], entry["owner"] or "", ", ".join(entry["input"]))
    console.print(table)


if __name__ == "__main__":
    app()
