"""Process management helpers for the supervised worker."""

from __future__ import annotations

import os
import signal
import subprocess
import sys

from loguru import logger


def pid_alive(pid: int) -> bool:
    """Check if a process with the given PID is alive."""
    try:
        os.kill(pid, 0)
        return True
    except OSError:
        return False


def new_session_kwargs() -> dict[str, object]:
    """Popen kwargs that detach the worker into its own process group."""
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


def signal_process_group(pid: int, sig: int, *, fallback: bool = True) -> None:
    """Send a signal to the process group of a PID.

    Falls back to signaling the PID directly if the process group
    matches the current process group (to avoid self-signaling).
    """
    try:
        pgid = os.getpgid(pid)
    except OSError:
        pgid = None
    current_pgid = os.getpgrp()
    if pgid is not None and pgid > 0 and pgid != current_pgid:
        try:
            os.killpg(pgid, sig)
            return
        except OSError:
            pass
    if fallback:
        try:
            os.kill(pid, sig)
        except OSError:
            pass


def kill_and_reap(proc: subprocess.Popen) -> int | None:
    """Kill a worker (never a graceful signal) and wait for it to exit.

    Returns the exit code. Safe to call on a process that already exited.
    """
    if proc.poll() is None:
        if sys.platform == "win32":
            try:
                proc.kill()
            except OSError:
                pass
        else:
            signal_process_group(proc.pid, signal.SIGKILL)
    returncode = proc.wait()
    logger.debug("worker pid={} reaped with code {}", proc.pid, returncode)
    return returncode
