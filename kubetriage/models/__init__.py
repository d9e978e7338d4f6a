"""Core data structures for kubetriage."""

from kubetriage.models.analysis import (
    Health,
    PipelineMeta,
    PrimaryFailureDebug,
    RankedFinding,
    RankingResult,
    ScoreBreakdown,
    TriageReport,
)
from kubetriage.models.config import TriageConfig
from kubetriage.models.findings import (
    GATING_CODES,
    Evidence,
    FailureCode,
    Finding,
    OverallStatus,
    Owner,
    Severity,
)
from kubetriage.models.snapshot import (
    ClusterSnapshot,
    DeploymentCondition,
    DetectionContext,
    EndpointsView,
    EventView,
    InvolvedObject,
    PodPhase,
    PodView,
    ServiceView,
    WorkloadView,
)

__all__ = [
    "GATING_CODES",
    "ClusterSnapshot",
    "DeploymentCondition",
    "DetectionContext",
    "EndpointsView",
    "EventView",
    "Evidence",
    "FailureCode",
    "Finding",
    "Health",
    "InvolvedObject",
    "OverallStatus",
    "Owner",
    "PipelineMeta",
    "PodPhase",
    "PodView",
    "PrimaryFailureDebug",
    "RankedFinding",
    "RankingResult",
    "ScoreBreakdown",
    "ServiceView",
    "Severity",
    "TriageConfig",
    "TriageReport",
    "WorkloadView",
]
