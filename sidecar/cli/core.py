"""Shared CLI application context and setup helpers."""

from __future__ import annotations

import typer
from rich.console import Console

from sidecar import __logo__, __version__

app = typer.Typer(
    name="sidecar",
    help=f"{__logo__} sidecar - RSS reader backend supervisor",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"{__logo__} sidecar v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
) -> None:
    """sidecar - RSS reader backend supervisor."""


def load_cli_config(binary: str | None = None):
    """Load config, applying a --binary override."""
    from sidecar.config.loader import load_config

    config = load_config()
    if binary:
        config.worker.binary = binary
    return config
