"""Background liveness polling of the owned worker."""

from __future__ import annotations

import threading
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext

from loguru import logger

from sidecar.runtime.errors import LimitExceeded, SupervisorError
from sidecar.runtime.policy import RestartPolicy
from sidecar.runtime.state import Liveness, SupervisorState
from sidecar.utils.process import kill_and_reap


class HealthMonitor:
    """Polls the worker every ``interval_s`` and hands dead workers to the restart policy."""

    def __init__(
        self,
        state: SupervisorState,
        policy: RestartPolicy,
        *,
        interval_s: float = 5.0,
        guard: Callable[[], AbstractContextManager[object]] | None = None,
    ) -> None:
        self._state = state
        self._policy = policy
        self.interval_s = interval_s
        self._guard = guard or nullcontext
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name="backend-health-monitor",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_s):
            try:
                self.tick()
            except Exception:
                logger.opt(exception=True).error("health monitor tick failed")

    def tick(self) -> Liveness:
        """Run one liveness check; restart the worker if it died."""
        with self._guard():
            if self._stop.is_set():
                return Liveness.NO_HANDLE
            liveness = self._state.probe()
            if liveness != Liveness.EXITED:
                return liveness

            dead = self._state.mark_crashed()
            if dead is not None:
                code = kill_and_reap(dead)
                logger.warning("worker pid={} exited with code {}", dead.pid, code)

            try:
                self._policy.restart()
            except LimitExceeded:
                pass
            except SupervisorError as e:
                logger.warning("worker still down after restart attempt: {}", e)
            return liveness
