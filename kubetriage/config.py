"""Environment-variable configuration loader.

Every setting is read from a ``KUBETRIAGE_*`` variable. Numeric values are
clamped into their supported range; values that cannot be interpreted raise
ValueError so misconfiguration fails at startup rather than mid-request.
"""

from __future__ import annotations

import os

from kubetriage.models.config import (
    LogConfig,
    OutputConfig,
    PipelineConfig,
    SnapshotConfig,
    TriageConfig,
)
from kubetriage.observability.logging import is_valid_level

_PREFIX = "KUBETRIAGE_"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})


def _env(name: str, default: str) -> str:
    return os.environ.get(_PREFIX + name, default)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(_PREFIX + name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"Invalid boolean for {_PREFIX}{name}: {raw!r}")


def _env_int(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = os.environ.get(_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid integer for {_PREFIX}{name}: {raw!r}") from exc
    return max(minimum, min(value, maximum))


def _env_csv(name: str) -> frozenset[str]:
    raw = os.environ.get(_PREFIX + name, "")
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def load_config() -> TriageConfig:
    """Build a TriageConfig from the current environment."""
    level = _env("LOG_LEVEL", "info").strip().lower()
    if not is_valid_level(level):
        raise ValueError(f"Invalid log level: {level!r}")

    namespace = _env("DEFAULT_NAMESPACE", "default").strip() or "default"

    return TriageConfig(
        log=LogConfig(level=level),
        pipeline=PipelineConfig(
            max_workers=_env_int("PIPELINE_WORKERS", 1, minimum=1, maximum=16),
            disabled_detectors=_env_csv("DISABLED_DETECTORS"),
        ),
        snapshot=SnapshotConfig(
            default_namespace=namespace,
            limit_events=_env_int("LIMIT_EVENTS", 50, minimum=1, maximum=500),
        ),
        output=OutputConfig(debug_scores=_env_bool("DEBUG_SCORES", True)),
    )
