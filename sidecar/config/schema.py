"""Configuration schema using Pydantic."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from sidecar.config.defaults import (
    DEFAULT_APP_NAME,
    DEFAULT_LOGGING,
    DEFAULT_SUPERVISOR,
    DEFAULT_WORKER_NAME,
)


class WorkerConfig(BaseModel):
    """Where the worker binary lives and how it is invoked."""

    model_config = ConfigDict(extra="ignore")

    name: str = DEFAULT_WORKER_NAME
    binary: str = ""  # explicit path; empty means search
    manifest_dir: str = ""  # dev tree holding binaries/<name>-<triple>
    exe_dir: str = ""  # defaults to the running executable's directory
    app_name: str = DEFAULT_APP_NAME
    target_triple: str = ""  # empty means detect
    extra_args: list[str] = Field(default_factory=list)

    @property
    def binary_path(self) -> Path | None:
        return Path(self.binary).expanduser() if self.binary.strip() else None


class SupervisorConfig(BaseModel):
    """Handshake, health-check and restart timings."""

    model_config = ConfigDict(extra="ignore")

    handshake_timeout_s: float = Field(default=float(DEFAULT_SUPERVISOR["handshake_timeout_s"]), gt=0)
    health_interval_s: float = Field(default=float(DEFAULT_SUPERVISOR["health_interval_s"]), gt=0)
    restart_grace_ms: int = Field(default=int(DEFAULT_SUPERVISOR["restart_grace_ms"]), ge=0)
    max_restarts: int = Field(default=int(DEFAULT_SUPERVISOR["max_restarts"]), ge=0)

    @property
    def restart_grace_s(self) -> float:
        return self.restart_grace_ms / 1000.0


class LoggingConfig(BaseModel):
    """Supervisor log output."""

    model_config = ConfigDict(extra="ignore")

    level: str = str(DEFAULT_LOGGING["level"])
    file: bool = bool(DEFAULT_LOGGING["file"])

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level


class Config(BaseSettings):
    """Root configuration for sidecar."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True, env_prefix="SIDECAR_", env_nested_delimiter="__")

    config_version: int = 1
    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    supervisor: SupervisorConfig = Field(default_factory=SupervisorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
