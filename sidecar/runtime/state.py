"""Shared supervisor record: owned process, announced port, restart counter."""

from __future__ import annotations

import subprocess
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from sidecar.runtime.errors import NotReady, WorkerUnavailable


class BackendPhase(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    CRASHED = "crashed"
    RESTARTING = "restarting"
    FAILED = "failed"


class Liveness(str, Enum):
    ALIVE = "alive"
    EXITED = "exited"
    NO_HANDLE = "no_handle"


@dataclass(slots=True, frozen=True)
class BackendStatus:
    phase: BackendPhase
    port: int | None
    pid: int | None
    restarts: int
    binary: Path | None

    @property
    def ready(self) -> bool:
        return self.port is not None


class SupervisorState:
    """Lock-protected state; every mutation is one short critical section.

    Callers never kill or wait on a process while holding the lock: handles
    leave the state through ``install``/``take_process``/``mark_crashed`` and
    are reaped by the caller afterwards.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._process: subprocess.Popen | None = None
        self._port: int | None = None
        self._binary: Path | None = None
        self._restarts = 0
        self._phase = BackendPhase.STOPPED
        self._confirmed_healthy = False

    def install(self, process: subprocess.Popen, port: int, binary: Path | None = None) -> subprocess.Popen | None:
        with self._lock:
            previous = self._process
            self._process = process
            self._port = port
            self._binary = binary
            self._phase = BackendPhase.RUNNING
            self._confirmed_healthy = True
        if previous is process:
            return None
        return previous

    def take_process(self) -> subprocess.Popen | None:
        with self._lock:
            process = self._process
            self._process = None
            self._port = None
            return process

    def probe(self) -> Liveness:
        with self._lock:
            process = self._process
            phase = self._phase
        if process is None:
            # A restart that failed to launch leaves a crashed episode without a handle.
            return Liveness.EXITED if phase == BackendPhase.CRASHED else Liveness.NO_HANDLE
        return Liveness.ALIVE if process.poll() is None else Liveness.EXITED

    def mark_crashed(self) -> subprocess.Popen | None:
        """Clear port and handle; return the dead handle for reaping."""
        with self._lock:
            process = self._process
            self._process = None
            self._port = None
            self._phase = BackendPhase.CRASHED
            return process

    def reset_if_healthy(self) -> bool:
        """Zero the counter if a launch has handshaked since the last reset."""
        with self._lock:
            if not self._confirmed_healthy:
                return False
            self._confirmed_healthy = False
            self._restarts = 0
            return True

    def begin_restart(self, ceiling: int) -> int | None:
        """Count one restart attempt; None once the ceiling is reached.

        Reaching the ceiling moves to FAILED only when no worker is owned.
        """
        with self._lock:
            if self._restarts >= ceiling:
                if self._process is None:
                    self._phase = BackendPhase.FAILED
                return None
            self._restarts += 1
            self._phase = BackendPhase.RESTARTING
            return self._restarts

    def set_phase(self, phase: BackendPhase) -> None:
        with self._lock:
            self._phase = phase

    def begin_episode(self) -> None:
        with self._lock:
            self._restarts = 0
            self._confirmed_healthy = False
            self._phase = BackendPhase.STARTING

    def clear(self) -> subprocess.Popen | None:
        """Drop everything back to STOPPED; returns the handle for the caller to reap."""
        with self._lock:
            process = self._process
            self._process = None
            self._port = None
            self._restarts = 0
            self._confirmed_healthy = False
            self._phase = BackendPhase.STOPPED
            return process

    @property
    def phase(self) -> BackendPhase:
        with self._lock:
            return self._phase

    @property
    def restarts(self) -> int:
        with self._lock:
            return self._restarts

    def current_port(self) -> int:
        with self._lock:
            port = self._port
            phase = self._phase
        if port is not None:
            return port
        if phase == BackendPhase.FAILED:
            raise WorkerUnavailable()
        raise NotReady()

    def snapshot(self) -> BackendStatus:
        with self._lock:
            return BackendStatus(
                phase=self._phase,
                port=self._port,
                pid=self._process.pid if self._process is not None else None,
                restarts=self._restarts,
                binary=self._binary,
            )
