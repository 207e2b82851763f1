"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from podplacement.models.config import (
    AnalyzerConfig,
    APIConfig,
    LogConfig,
    PodPlacementConfig,
    SnapshotConfig,
    WatchConfig,
)
from podplacement.observability.logging import LOG_FORMATS


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"PODPLACEMENT_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_log_format(value: str) -> str:
    if value.lower() not in LOG_FORMATS:
        raise ValueError(f"Invalid log format: {value}. Must be one of {LOG_FORMATS}")
    return value.lower()


def load_config() -> PodPlacementConfig:
    """Load configuration from PODPLACEMENT_* environment variables."""
    return PodPlacementConfig(
        analyzer=AnalyzerConfig(
            recompute_interval_seconds=_env_int("RECOMPUTE_INTERVAL", 60, min_val=5, max_val=3600),
            min_chain_length=_env_int("MIN_CHAIN_LENGTH", 1, min_val=1),
        ),
        watch=WatchConfig(
            enabled=_env_bool("WATCH_ENABLED", True),
            namespace=_env("WATCH_NAMESPACE", ""),
        ),
        snapshot=SnapshotConfig(
            path=_env("SNAPSHOT_PATH", ""),
        ),
        api=APIConfig(
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
            format=_validate_log_format(_env("LOG_FORMAT", "json")),
        ),
    )
