"""CLI commands for sidecar."""

from sidecar.cli import status_commands, worker_commands  # noqa: F401  (register commands)
from sidecar.cli.core import app

__all__ = ["app"]

if __name__ == "__main__":
    app()
