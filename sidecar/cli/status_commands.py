"""Setup, status and log CLI commands."""

from __future__ import annotations

import typer

from sidecar import __logo__

from .core import app, console


@app.command()
def onboard() -> None:
    """Write the default sidecar configuration."""
    from sidecar.config.loader import get_config_path, save_config
    from sidecar.config.schema import Config

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    save_config(Config())
    console.print(f"[green]✓[/green] Created config at {config_path}")
    console.print("\nNext steps:")
    console.print("  1. Point [cyan]worker.binary[/cyan] at the backend, or check [cyan]sidecar locate[/cyan]")
    console.print("  2. Run: [cyan]sidecar run[/cyan]")


@app.command()
def status() -> None:
    """Show sidecar configuration and worker binary resolution."""
    from sidecar.config.loader import get_config_path, load_config
    from sidecar.runtime.errors import SpawnFailure
    from sidecar.runtime.locator import resolve_binary
    from sidecar.utils.helpers import get_log_file_path

    config_path = get_config_path()
    config = load_config()
    sup = config.supervisor

    console.print(f"{__logo__} sidecar Status\n")
    console.print(
        f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[dim](defaults)[/dim]'}"
    )
    try:
        binary = resolve_binary(config.worker)
        console.print(f"Worker: {binary} [green]✓[/green]")
    except SpawnFailure as e:
        console.print(f"Worker: [red]✗[/red] {e}")
    console.print(f"Handshake timeout: {sup.handshake_timeout_s:g}s")
    console.print(f"Health interval: {sup.health_interval_s:g}s")
    console.print(f"Restart grace: {sup.restart_grace_ms}ms")
    console.print(f"Max restarts: {sup.max_restarts}")
    if config.logging.file:
        console.print(f"Log: {get_log_file_path()}")


@app.command()
def logs(
    follow: bool = typer.Option(True, "--follow/--no-follow", help="Follow log output"),
    lines: int = typer.Option(200, "--lines", "-n", min=1, help="Initial lines for tail mode"),
) -> None:
    """View the supervisor log."""
    import shutil
    import subprocess

    from sidecar.utils.helpers import get_log_file_path

    path = get_log_file_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(exist_ok=True)

    if not shutil.which("tail"):
        console.print(path.read_text(errors="replace"))
        return

    cmd = ["tail", "-n", str(lines)]
    if follow:
        cmd.append("-F")
    cmd.append(str(path))
    try:
        subprocess.run(cmd, check=False)
    except KeyboardInterrupt:
        return
