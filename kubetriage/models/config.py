"""Configuration data structures, populated by ``kubetriage.config.load_config``."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LogConfig:
    level: str = "info"


@dataclass(frozen=True)
class PipelineConfig:
    """Detector pipeline settings."""

    max_workers: int = 1
    disabled_detectors: frozenset[str] = frozenset()


@dataclass(frozen=True)
class SnapshotConfig:
    """Defaults applied when building a snapshot for a request."""

    default_namespace: str = "default"
    limit_events: int = 50


@dataclass(frozen=True)
class OutputConfig:
    debug_scores: bool = True


@dataclass(frozen=True)
class TriageConfig:
    """Top-level kubetriage configuration."""

    log: LogConfig = field(default_factory=LogConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    snapshot: SnapshotConfig = field(default_factory=SnapshotConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
