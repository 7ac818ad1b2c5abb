"""Spawn the worker binary and wait for its port announcement."""

from __future__ import annotations

import subprocess
import time
from pathlib import Path

from loguru import logger

from sidecar.config.schema import SupervisorConfig, WorkerConfig
from sidecar.runtime.errors import HandshakeTimeout, SpawnFailure
from sidecar.runtime.handshake import HandshakeReader, StreamForwarder
from sidecar.runtime.locator import resolve_binary
from sidecar.runtime.state import SupervisorState
from sidecar.utils.process import kill_and_reap, new_session_kwargs

PORT_ARG = "--port=0"


class Launcher:
    """Resolves, spawns and handshakes one worker instance per ``start()``."""

    def __init__(
        self,
        state: SupervisorState,
        worker: WorkerConfig,
        supervisor: SupervisorConfig,
    ) -> None:
        self._state = state
        self._worker = worker
        self._timeout_s = supervisor.handshake_timeout_s

    def command(self, binary: Path) -> list[str]:
        return [str(binary), PORT_ARG, *self._worker.extra_args]

    def start(self) -> int:
        """Launch a worker and install it into the state; returns the announced port.

        Raises:
            SpawnFailure: binary missing or the OS refused to execute it.
            HandshakeTimeout: no valid ``PORT:`` line within the deadline.
        """
        binary = resolve_binary(self._worker)
        cmd = self.command(binary)
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                **new_session_kwargs(),
            )
        except OSError as e:
            raise SpawnFailure(f"Failed to spawn worker {binary}: {e}") from e
        spawned_at = time.monotonic()
        logger.info("spawned worker pid={} ({})", proc.pid, " ".join(cmd))

        reader = HandshakeReader(proc.stdout, pid=proc.pid)
        reader.start()
        StreamForwarder(proc.stderr, pid=proc.pid).start()

        remaining = self._timeout_s - (time.monotonic() - spawned_at)
        port = reader.wait(remaining)
        if port is None:
            logger.error(
                "worker pid={} did not announce a port within {:g}s; killing it",
                proc.pid,
                self._timeout_s,
            )
            kill_and_reap(proc)
            raise HandshakeTimeout(self._timeout_s, pid=proc.pid)

        previous = self._state.install(proc, port, binary)
        if previous is not None:
            logger.warning("replacing previous worker pid={}", previous.pid)
            kill_and_reap(previous)
        logger.info("worker pid={} ready on port {}", proc.pid, port)
        return port
