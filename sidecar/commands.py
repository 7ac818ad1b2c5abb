"""Command handlers exposed to the UI layer.

These are the only calls the rest of the application makes into the
supervisor. Errors are translated to ``BackendUnavailable`` whose message is
meant to be shown as-is.
"""

from __future__ import annotations

from typing import Any

import httpx

from sidecar.runtime.errors import NotReady, WorkerUnavailable
from sidecar.runtime.supervisor import BackendSupervisor

BACKEND_HOST = "127.0.0.1"


class BackendUnavailable(RuntimeError):
    """The backend cannot serve requests right now."""

    def __init__(self, message: str, *, transient: bool) -> None:
        super().__init__(message)
        self.transient = transient


def get_backend_port(supervisor: BackendSupervisor) -> int:
    """Port of the running worker.

    Raises BackendUnavailable("backend not available", transient=True) while
    the worker is starting or restarting; callers should retry. After the
    restart ceiling it raises "worker unavailable" with transient=False.
    """
    try:
        return supervisor.current_port()
    except WorkerUnavailable as e:
        raise BackendUnavailable(str(e), transient=False) from e
    except NotReady as e:
        raise BackendUnavailable(str(e), transient=True) from e


def backend_base_url(port: int) -> str:
    return f"http://{BACKEND_HOST}:{port}"


def probe_health(port: int, timeout: float = 2.0) -> dict[str, Any]:
    """GET /health on the worker and return its JSON body."""
    response = httpx.get(f"{backend_base_url(port)}/health", timeout=timeout)
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError(f"Unexpected /health payload: {data!r}")
    return data
