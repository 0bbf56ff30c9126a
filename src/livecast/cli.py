# src/livecast/cli.py
"""
Livecast Command Line Interface (CLI).

This module implements the operator-facing terminal interface using `typer`
and `rich`.

Commands
--------
- **serve**: Run the live view listener on its own, until interrupted.
  Observers can connect; captures happen once an automation calls `serve()`
  on the same `LivecastServer` (embedded use), so this is mostly useful to
  check ports and connectivity.
- **artifacts**: List the screenshots currently retained on disk.
- **settings**: Show the effective configuration (env + `.env` files).

Usage
-----
    $ livecast serve --port 4321 --screenshots
    $ livecast artifacts --dir storage/live_view
    $ livecast settings
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from livecast.core.artifacts import ArtifactStore
from livecast.core.settings import load_settings
from livecast.live.server import LivecastServer

# Ensure env vars (like LIVECAST_PORT) are loaded before any logic runs
load_dotenv()

app = typer.Typer(
    help="Livecast: watch an automated page live over WebSockets.",
    rich_markup_mode="markdown",
)
console = Console()


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


async def _run_server(live: LivecastServer) -> int:
    """Start `live`, block until the listener exits, return an exit code."""
    result = await live.start()
    if result.is_err():
        console.print(f"[bold red]❌ {result.unwrap_err()}[/bold red]")
        return 1

    console.print(
        Panel.fit(
            f"[bold cyan]Livecast[/bold cyan] listening\n"
            f"Open: [link={result.unwrap()}]{result.unwrap()}[/link]\n"
            f"WebSocket: [u]/ws[/u]   Screenshots: [u]/screenshot/<index>[/u]",
            border_style="cyan",
        )
    )
    await live.run_until_closed()
    return 0


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def serve(
    host: Annotated[
        str | None,
        typer.Option("--host", help="Bind host (default: LIVECAST_HOST)."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", min=0, max=65535, help="Bind port (default: LIVECAST_PORT)."),
    ] = None,
    screenshots: Annotated[
        bool | None,
        typer.Option(
            "--screenshots/--no-screenshots",
            help="Include JPEG screenshots in snapshots.",
        ),
    ] = None,
) -> None:
    """
    Run the live view web server until interrupted (Ctrl-C).
    """
    overrides = {
        key: value
        for key, value in {"host": host, "port": port, "use_screenshots": screenshots}.items()
        if value is not None
    }
    cfg = load_settings().model_copy(update=overrides)
    live = LivecastServer(cfg)

    try:
        code = asyncio.run(_run_server(live))
    except KeyboardInterrupt:
        code = 0
    console.print("[dim]Live view web server stopped.[/dim]")
    if code:
        raise typer.Exit(code=code)


@app.command()  # type: ignore[misc]
def artifacts(
    directory: Annotated[
        Path | None,
        typer.Option(
            "--dir",
            "-d",
            file_okay=False,
            dir_okay=True,
            help="Artifact directory (default: LIVECAST_ARTIFACT_DIR).",
        ),
    ] = None,
) -> None:
    """
    List the screenshot artifacts currently retained on disk.
    """
    store = ArtifactStore(directory or load_settings().artifact_dir)
    indices = store.indices()
    if not indices:
        console.print(f"[yellow]No screenshots retained in {store.base_dir}[/yellow]")
        return

    table = Table(title=f"Screenshots in {store.base_dir}")
    table.add_column("Index", justify="right", style="cyan")
    table.add_column("Bytes", justify="right")
    table.add_column("Modified")
    for index in indices:
        stat = store.path_for(index).stat()
        modified = datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M:%S")
        table.add_row(str(index), str(stat.st_size), modified)
    console.print(table)


@app.command("settings")  # type: ignore[misc]
def show_settings() -> None:
    """
    Show the effective configuration.
    """
    table = Table(title="Livecast settings")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for name, value in load_settings().model_dump().items():
        table.add_row(name, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
