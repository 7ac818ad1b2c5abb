"""Error taxonomy for worker launch, supervision and queries."""

from __future__ import annotations


class SupervisorError(Exception):
    """Base class for every error raised by the backend supervisor."""


class LaunchError(SupervisorError):
    """The worker could not be brought to a ready state."""


class SpawnFailure(LaunchError):
    """Worker binary is missing, not executable, or the OS refused to spawn it."""


class HandshakeTimeout(LaunchError):
    """Worker was spawned but never announced a valid port in time."""

    def __init__(self, timeout_s: float, pid: int | None = None) -> None:
        self.timeout_s = timeout_s
        self.pid = pid
        suffix = f" (pid {pid})" if pid is not None else ""
        super().__init__(f"No PORT announcement within {timeout_s:g}s{suffix}")


class RestartError(SupervisorError):
    """A restart attempt was refused."""


class LimitExceeded(RestartError):
    """Restart ceiling reached; no further automatic restarts for this episode."""

    def __init__(self, ceiling: int) -> None:
        self.ceiling = ceiling
        super().__init__(f"Worker restart limit reached ({ceiling} attempts)")


class NotReady(SupervisorError):
    """No handshake has completed since the last process loss."""

    def __init__(self, message: str = "backend not available") -> None:
        super().__init__(message)


class WorkerUnavailable(NotReady):
    """The current episode failed; the worker stays down until restarted externally."""

    def __init__(self, message: str = "worker unavailable") -> None:
        super().__init__(message)
