"""Worker process commands: run, locate, probe."""

from __future__ import annotations

import time

import typer
from rich.table import Table

from sidecar import __logo__

from .core import app, console, load_cli_config


@app.command()
def run(
    binary: str = typer.Option(None, "--binary", "-b", help="Worker binary (skips the search)"),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging"),
) -> None:
    """Start the backend worker and supervise it until Ctrl-C."""
    from sidecar.commands import backend_base_url
    from sidecar.runtime import BackendPhase, BackendSupervisor, LaunchError
    from sidecar.utils.helpers import get_log_file_path
    from sidecar.utils.logsetup import configure_logging

    config = load_cli_config(binary)
    level = "DEBUG" if verbose else config.logging.level
    configure_logging(level, get_log_file_path() if config.logging.file else None)

    supervisor = BackendSupervisor(config)
    try:
        port = supervisor.start()
    except LaunchError as e:
        console.print(f"[red]Backend failed to start:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"{__logo__} [green]✓[/green] Backend ready at {backend_base_url(port)}")
    console.print("[dim]Press Ctrl-C to stop[/dim]")
    last_port: int | None = port
    try:
        while True:
            time.sleep(1.0)
            status = supervisor.status()
            if status.phase == BackendPhase.FAILED:
                console.print("[red]Worker unavailable: restart limit reached[/red]")
                raise typer.Exit(1)
            if status.port is not None and status.port != last_port:
                console.print(f"[yellow]Backend restarted[/yellow] at {backend_base_url(status.port)}")
            last_port = status.port
    except KeyboardInterrupt:
        console.print("\nStopping backend...")
    finally:
        supervisor.stop()


@app.command()
def locate(
    binary: str = typer.Option(None, "--binary", "-b", help="Worker binary (skips the search)"),
) -> None:
    """Show where the worker binary is searched for."""
    from sidecar.runtime.errors import SpawnFailure
    from sidecar.runtime.locator import candidate_paths, detect_target_triple, resolve_binary

    config = load_cli_config(binary)
    worker = config.worker

    table = Table(title=f"Worker binary search ({worker.target_triple or detect_target_triple()})")
    table.add_column("Source", style="cyan")
    table.add_column("Path")
    table.add_column("Found", style="green")
    if worker.binary_path is not None:
        table.add_row("configured", str(worker.binary_path), "✓" if worker.binary_path.is_file() else "✗")
    for candidate in candidate_paths(worker):
        table.add_row(candidate.source, str(candidate.path), "✓" if candidate.exists else "✗")
    console.print(table)

    try:
        resolved = resolve_binary(worker)
    except SpawnFailure as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(f"Using: [green]{resolved}[/green]")


@app.command()
def probe(
    port: int = typer.Argument(..., min=1, max=65535, help="Worker port"),
    timeout: float = typer.Option(2.0, "--timeout", "-t", help="Request timeout in seconds"),
) -> None:
    """Call /health on a running worker."""
    import httpx

    from sidecar.commands import backend_base_url, probe_health

    try:
        payload = probe_health(port, timeout=timeout)
    except (httpx.HTTPError, ValueError) as e:
        console.print(f"[red]Backend at {backend_base_url(port)} is not healthy:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {backend_base_url(port)} status={payload.get('status', '?')}")
    database = payload.get("database")
    if database is not None:
        console.print(f"Database: {database}")
