"""Bounded-retry restart of a dead worker."""

from __future__ import annotations

import time

from loguru import logger

from sidecar.runtime.errors import LaunchError, LimitExceeded
from sidecar.runtime.launcher import Launcher
from sidecar.runtime.state import BackendPhase, SupervisorState
from sidecar.utils.process import kill_and_reap


class RestartPolicy:
    def __init__(
        self,
        state: SupervisorState,
        launcher: Launcher,
        *,
        max_restarts: int = 5,
        grace_s: float = 0.5,
    ) -> None:
        self._state = state
        self._launcher = launcher
        self.max_restarts = max_restarts
        self.grace_s = grace_s

    def restart(self) -> int:
        """Relaunch the worker; returns the new port.

        Raises LimitExceeded once the ceiling is reached (no spawn is attempted),
        or the LaunchError of a failed attempt. A failed attempt leaves the
        episode CRASHED so the next health tick tries again. A worker that
        handshaked since the last restart starts a new episode of attempts.
        """
        if self._state.reset_if_healthy():
            logger.debug("previous launch was healthy; restart counter reset")
        attempt = self._state.begin_restart(self.max_restarts)
        if attempt is None:
            logger.error(
                "worker restart limit reached ({}); backend stays down until the supervisor is restarted",
                self.max_restarts,
            )
            raise LimitExceeded(self.max_restarts)

        stale = self._state.take_process()
        if stale is not None:
            kill_and_reap(stale)

        logger.info("restarting worker (attempt {}/{})", attempt, self.max_restarts)
        time.sleep(self.grace_s)
        try:
            port = self._launcher.start()
        except LaunchError as e:
            self._state.set_phase(BackendPhase.CRASHED)
            logger.error("worker restart attempt {} failed: {}", attempt, e)
            raise
        logger.info("worker restarted on port {} (attempt {})", port, attempt)
        return port
