import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest
from loguru import logger

from sidecar.config.schema import Config, SupervisorConfig, WorkerConfig

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="worker scripts rely on shebangs")


class FakeProcess:
    """Stands in for subprocess.Popen; ``returncode`` None means alive."""

    _next_pid = 900000

    def __init__(self, returncode: int | None = None) -> None:
        FakeProcess._next_pid += 1
        self.pid = FakeProcess._next_pid
        self.returncode = returncode

    def poll(self) -> int | None:
        return self.returncode

    def wait(self, timeout: float | None = None) -> int | None:
        return self.returncode

    def crash(self, code: int = 1) -> None:
        self.returncode = code


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SIDECAR_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("SIDECAR_MANIFEST_DIR", raising=False)


@pytest.fixture()
def log_messages() -> list[str]:
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture()
def write_worker(tmp_path: Path) -> Callable[[str, str], Path]:
    def _write(name: str, body: str) -> Path:
        path = tmp_path / "bin" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
        path.chmod(0o755)
        return path

    return _write


@pytest.fixture()
def fast_config() -> Callable[..., Config]:
    def _make(binary: Path, **supervisor: float) -> Config:
        timings = {
            "handshake_timeout_s": 3.0,
            "health_interval_s": 0.1,
            "restart_grace_ms": 0,
            "max_restarts": 5,
        }
        timings.update(supervisor)
        return Config(
            worker=WorkerConfig(binary=str(binary)),
            supervisor=SupervisorConfig(**timings),
        )

    return _make
