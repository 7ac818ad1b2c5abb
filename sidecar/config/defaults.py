"""Centralized defaults for generated config files."""

from __future__ import annotations

from typing import Any

DEFAULT_WORKER_NAME = "rss-reader-backend"
DEFAULT_APP_NAME = "rss-reader"

DEFAULT_SUPERVISOR: dict[str, Any] = {
    "handshake_timeout_s": 10.0,
    "health_interval_s": 5.0,
    "restart_grace_ms": 500,
    "max_restarts": 5,
}

DEFAULT_LOGGING: dict[str, Any] = {
    "level": "INFO",
    "file": True,
}


def apply_missing_defaults(snake_config: dict[str, Any]) -> None:
    """Fill absent sections of a snake_case config payload in place."""
    worker = snake_config.get("worker")
    if not isinstance(worker, dict):
        worker = {}
        snake_config["worker"] = worker
    worker.setdefault("name", DEFAULT_WORKER_NAME)
    worker.setdefault("app_name", DEFAULT_APP_NAME)

    supervisor = snake_config.get("supervisor")
    if not isinstance(supervisor, dict):
        supervisor = {}
        snake_config["supervisor"] = supervisor
    for key, value in DEFAULT_SUPERVISOR.items():
        supervisor.setdefault(key, value)

    logging_cfg = snake_config.get("logging")
    if not isinstance(logging_cfg, dict):
        logging_cfg = {}
        snake_config["logging"] = logging_cfg
    for key, value in DEFAULT_LOGGING.items():
        logging_cfg.setdefault(key, value)
