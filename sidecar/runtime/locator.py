"""Worker binary resolution across dev, packaged and bundled layouts."""

from __future__ import annotations

import os
import platform
import sys
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from sidecar.config.schema import WorkerConfig
from sidecar.runtime.errors import SpawnFailure

MANIFEST_DIR_ENV = "SIDECAR_MANIFEST_DIR"

_ARCH_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "x86_64": "x86_64",
    "arm64": "aarch64",
    "aarch64": "aarch64",
    "i386": "i686",
    "i686": "i686",
    "x86": "i686",
    "armv7l": "armv7",
}


@dataclass(slots=True, frozen=True)
class BinaryCandidate:
    source: str
    path: Path

    @property
    def exists(self) -> bool:
        return self.path.is_file()


def detect_target_triple(system: str | None = None, machine: str | None = None) -> str:
    """Return the Rust-style target triple used to suffix bundled binaries."""
    system = system or sys.platform
    raw_arch = (machine or platform.machine() or "").lower()
    arch = _ARCH_ALIASES.get(raw_arch, raw_arch or "unknown")
    if system == "darwin":
        return f"{arch}-apple-darwin"
    if system == "win32":
        return f"{arch}-pc-windows-msvc"
    if system.startswith("linux"):
        if arch == "armv7":
            return "armv7-unknown-linux-gnueabihf"
        return f"{arch}-unknown-linux-gnu"
    return f"{arch}-unknown-{system}"


def executable_suffix(system: str | None = None) -> str:
    return ".exe" if (system or sys.platform) == "win32" else ""


def default_exe_dir() -> Path:
    """Directory of the running executable (the supervising app)."""
    argv0 = sys.argv[0] if sys.argv and sys.argv[0] else ""
    if argv0 and Path(argv0).exists():
        return Path(argv0).resolve().parent
    return Path(sys.executable).resolve().parent


def candidate_paths(
    worker: WorkerConfig,
    *,
    system: str | None = None,
    triple: str | None = None,
) -> list[BinaryCandidate]:
    """All places the worker binary may live, highest priority first."""
    system = system or sys.platform
    triple = triple or worker.target_triple.strip() or detect_target_triple(system)
    ext = executable_suffix(system)
    name = worker.name
    candidates: list[BinaryCandidate] = []

    manifest_dir = worker.manifest_dir.strip() or os.environ.get(MANIFEST_DIR_ENV, "").strip()
    if manifest_dir:
        dev_root = Path(manifest_dir).expanduser()
        candidates.append(BinaryCandidate("development", dev_root / "binaries" / f"{name}-{triple}{ext}"))

    exe_dir = Path(worker.exe_dir).expanduser() if worker.exe_dir.strip() else default_exe_dir()
    candidates.append(BinaryCandidate("production", exe_dir / f"{name}{ext}"))
    candidates.append(BinaryCandidate("triple", exe_dir / f"{name}-{triple}{ext}"))

    if system == "darwin":
        bundled = exe_dir.parent / "Resources" / name
    elif system == "win32":
        bundled = exe_dir / "resources" / f"{name}{ext}"
    else:
        bundled = exe_dir.parent / "lib" / worker.app_name / name
    candidates.append(BinaryCandidate("bundle", bundled))
    return candidates


def resolve_binary(worker: WorkerConfig, *, system: str | None = None) -> Path:
    """Pick the first existing worker binary or raise SpawnFailure."""
    explicit = worker.binary_path
    if explicit is not None:
        if not explicit.is_file():
            raise SpawnFailure(f"Configured worker binary not found: {explicit}")
        return explicit

    candidates = candidate_paths(worker, system=system)
    for candidate in candidates:
        if candidate.exists:
            logger.debug("worker binary resolved via {}: {}", candidate.source, candidate.path)
            return candidate.path

    searched = ", ".join(str(c.path) for c in candidates)
    raise SpawnFailure(f"Worker binary '{worker.name}' not found. Searched: {searched}")
