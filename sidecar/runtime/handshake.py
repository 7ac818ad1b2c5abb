"""Port handshake over the worker's stdout, plus diagnostic forwarding.

The worker announces readiness with a single stdout line::

    PORT:54213

Every other line on stdout or stderr is free-form output and is only
forwarded to the supervisor log. Reading happens on daemon threads; the
launcher blocks on a single-use signal with a deadline.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from typing import IO

from loguru import logger

PORT_PREFIX = "PORT:"
MAX_PORT = 65535


def parse_port_line(line: str) -> int | None:
    """Return the announced port, or None if the line is not a valid announcement."""
    text = line.strip()
    if not text.startswith(PORT_PREFIX):
        return None
    digits = text[len(PORT_PREFIX):]
    if not digits or not (digits.isascii() and digits.isdigit()):
        return None
    port = int(digits)
    if port > MAX_PORT:
        return None
    return port


def iter_lines(stream: IO[bytes]) -> Iterator[str]:
    """Yield decoded lines until EOF (or until the stream is closed under us)."""
    while True:
        try:
            raw = stream.readline()
        except (OSError, ValueError):
            return
        if not raw:
            return
        yield raw.decode("utf-8", errors="replace").rstrip("\r\n")


class HandshakeSignal:
    """Single-use completion carrying the announced port."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._port: int | None = None

    @property
    def fired(self) -> bool:
        return self._event.is_set()

    def fire(self, port: int) -> bool:
        # Only the stdout reader thread fires, so no lock is needed.
        if self._event.is_set():
            return False
        self._port = port
        self._event.set()
        return True

    def wait(self, timeout: float) -> int | None:
        if self._event.wait(max(0.0, timeout)):
            return self._port
        return None


class StreamForwarder:
    """Forward every line of a worker stream to the log until EOF."""

    stream_name = "stderr"
    level = "WARNING"

    def __init__(self, stream: IO[bytes], *, pid: int) -> None:
        self._stream = stream
        self._pid = pid
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self.run,
            name=f"worker-{self._pid}-{self.stream_name}",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def run(self) -> None:
        try:
            for line in iter_lines(self._stream):
                logger.log(self.level, "[worker {} {}] {}", self._pid, self.stream_name, line)
                self.handle_line(line)
        finally:
            try:
                self._stream.close()
            except OSError:
                pass
        logger.debug("worker pid={} {} closed", self._pid, self.stream_name)

    def handle_line(self, line: str) -> None:
        pass


class HandshakeReader(StreamForwarder):
    """Scan stdout for the port announcement, then keep forwarding output."""

    stream_name = "stdout"
    level = "INFO"

    def __init__(self, stream: IO[bytes], *, pid: int, signal: HandshakeSignal | None = None) -> None:
        super().__init__(stream, pid=pid)
        self.signal = signal or HandshakeSignal()

    def handle_line(self, line: str) -> None:
        if self.signal.fired:
            return
        port = parse_port_line(line)
        if port is not None and self.signal.fire(port):
            logger.info("worker pid={} announced port {}", self._pid, port)

    def wait(self, timeout: float) -> int | None:
        """Block up to ``timeout`` seconds for the port; EOF does not end the wait early."""
        return self.signal.wait(timeout)
