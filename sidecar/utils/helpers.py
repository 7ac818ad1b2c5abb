"""Utility functions for sidecar."""

import os
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """Get the sidecar data directory.

    Respects SIDECAR_HOME environment variable; falls back to ~/.sidecar.
    """
    sidecar_home = os.environ.get("SIDECAR_HOME", "").strip()
    if sidecar_home:
        return ensure_dir(Path(sidecar_home))
    return ensure_dir(Path.home() / ".sidecar")


def get_var_path() -> Path:
    """Get the ephemeral state directory (~/.sidecar/var)."""
    return ensure_dir(get_data_path() / "var")


def get_logs_path() -> Path:
    """Get the logs directory (~/.sidecar/var/logs)."""
    return ensure_dir(get_var_path() / "logs")


def get_log_file_path() -> Path:
    """Get the supervisor log file (~/.sidecar/var/logs/sidecar.log)."""
    return get_logs_path() / "sidecar.log"
