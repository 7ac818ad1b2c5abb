"""Backend worker runtime: launch, handshake, health monitoring and restarts."""

from sidecar.runtime.errors import (
    HandshakeTimeout,
    LaunchError,
    LimitExceeded,
    NotReady,
    RestartError,
    SpawnFailure,
    SupervisorError,
    WorkerUnavailable,
)
from sidecar.runtime.state import BackendPhase, BackendStatus
from sidecar.runtime.supervisor import BackendSupervisor

__all__ = [
    "BackendPhase",
    "BackendStatus",
    "BackendSupervisor",
    "HandshakeTimeout",
    "LaunchError",
    "LimitExceeded",
    "NotReady",
    "RestartError",
    "SpawnFailure",
    "SupervisorError",
    "WorkerUnavailable",
]
