import threading
import time
from pathlib import Path

import pytest

from conftest import FakeProcess, posix_only
from sidecar.commands import BackendUnavailable, get_backend_port
from sidecar.runtime import (
    BackendPhase,
    BackendSupervisor,
    HandshakeTimeout,
    NotReady,
    SpawnFailure,
)
from sidecar.utils.process import pid_alive

pytestmark = posix_only

GOOD_WORKER = """
import sys, time
if "--port=0" not in sys.argv:
    sys.exit(3)
print("noise", flush=True)
print("PORT:8080", flush=True)
print("more noise", flush=True)
print("listening", file=sys.stderr, flush=True)
time.sleep(60)
"""

SILENT_EXIT_WORKER = """
import sys
sys.exit(0)
"""

HANGING_WORKER = """
import time
print("starting up", flush=True)
time.sleep(60)
"""

# First launch announces a port and dies shortly after; later launches stay up.
FLAKY_WORKER = """
import sys, time
from pathlib import Path
counter = Path(__file__).with_suffix(".count")
count = int(counter.read_text()) + 1 if counter.exists() else 1
counter.write_text(str(count))
print(f"PORT:{7000 + count}", flush=True)
if count == 1:
    time.sleep(0.3)
    sys.exit(1)
time.sleep(60)
"""


def _wait_for(predicate, timeout: float = 10.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return False


def test_start_returns_announced_port_and_stop_kills(write_worker, fast_config, log_messages) -> None:
    supervisor = BackendSupervisor(fast_config(write_worker("good", GOOD_WORKER)))
    with pytest.raises(NotReady):
        supervisor.current_port()

    port = supervisor.start()

    assert port == 8080
    assert supervisor.current_port() == 8080
    assert get_backend_port(supervisor) == 8080
    status = supervisor.status()
    assert status.phase == BackendPhase.RUNNING
    pid = status.pid
    assert pid is not None and pid_alive(pid)
    assert supervisor.start() == 8080  # already running

    supervisor.stop()

    assert not pid_alive(pid)
    assert supervisor.status().phase == BackendPhase.STOPPED
    with pytest.raises(NotReady):
        supervisor.current_port()
    with pytest.raises(BackendUnavailable, match="backend not available"):
        get_backend_port(supervisor)
    assert _wait_for(lambda: any("noise" in m for m in log_messages), timeout=2.0)


def test_silent_exit_fails_only_after_full_timeout(write_worker, fast_config) -> None:
    config = fast_config(write_worker("silent", SILENT_EXIT_WORKER), handshake_timeout_s=0.6)
    supervisor = BackendSupervisor(config)

    started = time.monotonic()
    with pytest.raises(HandshakeTimeout):
        supervisor.start()

    assert time.monotonic() - started >= 0.6
    assert supervisor.status().phase == BackendPhase.STOPPED


def test_handshake_timeout_kills_hanging_worker(write_worker, fast_config) -> None:
    config = fast_config(write_worker("hang", HANGING_WORKER), handshake_timeout_s=0.5)
    supervisor = BackendSupervisor(config)

    with pytest.raises(HandshakeTimeout) as excinfo:
        supervisor.start()

    assert excinfo.value.pid is not None
    assert not pid_alive(excinfo.value.pid)
    with pytest.raises(NotReady):
        supervisor.current_port()


def test_missing_binary_is_spawn_failure(tmp_path: Path, fast_config) -> None:
    supervisor = BackendSupervisor(fast_config(tmp_path / "nope"))
    with pytest.raises(SpawnFailure):
        supervisor.start()


def test_non_executable_binary_is_spawn_failure(write_worker, fast_config) -> None:
    binary = write_worker("noexec", GOOD_WORKER)
    binary.chmod(0o644)
    with pytest.raises(SpawnFailure):
        BackendSupervisor(fast_config(binary)).start()


def test_crashed_worker_is_restarted_on_new_port(write_worker, fast_config) -> None:
    supervisor = BackendSupervisor(fast_config(write_worker("flaky", FLAKY_WORKER)))
    try:
        assert supervisor.start() == 7001
        first_pid = supervisor.status().pid

        assert _wait_for(lambda: supervisor.status().port == 7002)

        status = supervisor.status()
        assert status.phase == BackendPhase.RUNNING
        assert status.pid != first_pid
        assert status.restarts == 1
        assert not pid_alive(first_pid)
    finally:
        supervisor.stop()
    assert not supervisor.monitor.running


def test_manual_restart_replaces_worker(write_worker, fast_config) -> None:
    supervisor = BackendSupervisor(fast_config(write_worker("good", GOOD_WORKER)))
    try:
        supervisor.start()
        old_pid = supervisor.status().pid

        assert supervisor.restart() == 8080

        assert supervisor.status().pid != old_pid
        assert not pid_alive(old_pid)
    finally:
        supervisor.stop()


def test_context_manager_stops_worker(write_worker, fast_config) -> None:
    with BackendSupervisor(fast_config(write_worker("good", GOOD_WORKER))) as supervisor:
        pid = supervisor.status().pid
        assert supervisor.current_port() == 8080
    assert not pid_alive(pid)


def test_repeated_manual_restarts_keep_worker_available(write_worker, fast_config) -> None:
    config = fast_config(write_worker("good", GOOD_WORKER))
    supervisor = BackendSupervisor(config)
    try:
        supervisor.start()
        for _ in range(config.supervisor.max_restarts + 2):
            assert supervisor.restart() == 8080
            status = supervisor.status()
            assert status.phase == BackendPhase.RUNNING
            assert status.restarts == 1
    finally:
        supervisor.stop()


def test_stop_reaps_worker_before_reporting_stopped(monkeypatch: pytest.MonkeyPatch) -> None:
    supervisor = BackendSupervisor()
    proc = FakeProcess()
    supervisor.state.install(proc, 8080)
    phases_while_reaping: list[BackendPhase] = []

    def _reap(process: FakeProcess) -> int:
        phases_while_reaping.append(supervisor.status().phase)
        process.crash(-9)
        return -9

    monkeypatch.setattr("sidecar.runtime.supervisor.kill_and_reap", _reap)

    supervisor.stop()

    assert phases_while_reaping == [BackendPhase.RUNNING]
    assert supervisor.status().phase == BackendPhase.STOPPED


class _BlockingLauncher:
    def __init__(self, supervisor: BackendSupervisor) -> None:
        self.supervisor = supervisor
        self.entered = threading.Event()
        self.release = threading.Event()

    def start(self) -> int:
        self.entered.set()
        self.release.wait(5.0)
        self.supervisor.state.install(FakeProcess(), 8080)
        return 8080


def test_stop_during_start_leaves_no_monitor_running(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sidecar.runtime.supervisor.kill_and_reap", lambda process: None)
    supervisor = BackendSupervisor()
    launcher = _BlockingLauncher(supervisor)
    supervisor.launcher = launcher  # type: ignore[assignment]

    starter = threading.Thread(target=supervisor.start)
    starter.start()
    assert launcher.entered.wait(5.0)
    stopper = threading.Thread(target=supervisor.stop)
    stopper.start()
    time.sleep(0.1)
    launcher.release.set()
    starter.join(5.0)
    stopper.join(5.0)

    assert not supervisor.monitor.running
    assert supervisor.status().phase == BackendPhase.STOPPED
