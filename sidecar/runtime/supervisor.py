"""Owns the backend worker lifecycle for one run of the application."""

from __future__ import annotations

import threading

from loguru import logger

from sidecar.config.schema import Config
from sidecar.runtime.errors import LaunchError
from sidecar.runtime.launcher import Launcher
from sidecar.runtime.monitor import HealthMonitor
from sidecar.runtime.policy import RestartPolicy
from sidecar.runtime.state import BackendPhase, BackendStatus, SupervisorState
from sidecar.utils.process import kill_and_reap


class BackendSupervisor:
    """Launch, watch and recover the worker.

    ``start``, ``stop``, ``restart`` and every monitor tick run under one
    lifecycle lock, so two launches for the worker never overlap. Queries
    (``current_port``, ``status``) only touch the state lock and never wait
    on a launch in progress.
    """

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or Config()
        self.state = SupervisorState()
        self._lifecycle = threading.RLock()
        self.launcher = Launcher(self.state, self.config.worker, self.config.supervisor)
        self.policy = RestartPolicy(
            self.state,
            self.launcher,
            max_restarts=self.config.supervisor.max_restarts,
            grace_s=self.config.supervisor.restart_grace_s,
        )
        self.monitor = HealthMonitor(
            self.state,
            self.policy,
            interval_s=self.config.supervisor.health_interval_s,
            guard=lambda: self._lifecycle,
        )

    def start(self) -> int:
        """Start a fresh episode and return the worker port.

        Already running: returns the current port. Launch errors propagate to
        the caller and leave the supervisor STOPPED.
        """
        with self._lifecycle:
            status = self.state.snapshot()
            if status.phase == BackendPhase.RUNNING and status.port is not None:
                return status.port

            self.state.begin_episode()
            try:
                port = self.launcher.start()
            except LaunchError as e:
                self.state.set_phase(BackendPhase.STOPPED)
                logger.error("failed to start backend worker: {}", e)
                raise
            self.monitor.start()
        return port

    def stop(self) -> None:
        """Kill the worker, wait for it to exit and clear state to not-ready."""
        self.monitor.stop()
        with self._lifecycle:
            process = self.state.take_process()
            if process is not None:
                kill_and_reap(process)
                logger.info("backend worker pid={} stopped", process.pid)
            self.state.clear()
        # A start() that held the lock first may have started a new monitor.
        self.monitor.stop()

    def restart(self) -> int:
        """Manual restart through the bounded restart policy."""
        with self._lifecycle:
            return self.policy.restart()

    def current_port(self) -> int:
        return self.state.current_port()

    def status(self) -> BackendStatus:
        return self.state.snapshot()

    def __enter__(self) -> BackendSupervisor:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
