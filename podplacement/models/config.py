"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class AnalyzerConfig:
    """Displacement analyzer configuration."""

    recompute_interval_seconds: int = 60
    min_chain_length: int = 1


@dataclass
class WatchConfig:
    """Pod watcher configuration."""

    enabled: bool = True
    namespace: str = ""  # empty string watches all namespaces


@dataclass
class SnapshotConfig:
    """Snapshot persistence configuration."""

    path: str = ""  # empty string disables load-on-start and save-on-shutdown


@dataclass
class APIConfig:
    """REST API configuration."""

    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "json"  # json or console


@dataclass
class PodPlacementConfig:
    """Top-level pod placement analyzer configuration."""

    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    snapshot: SnapshotConfig = field(default_factory=SnapshotConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
