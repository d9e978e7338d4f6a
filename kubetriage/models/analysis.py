"""Ranking, health and triage report data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

from kubetriage.models.findings import Finding, OverallStatus


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-factor contributions to a finding's rank score.

    readiness_penalty is stored as a non-positive contribution so that
    ``total`` is the plain sum of all factors.
    """

    severity_weight: int
    code_priority: int
    blast_radius: int
    readiness_penalty: int = 0

    @property
    def total(self) -> int:
        return self.severity_weight + self.code_priority + self.blast_radius + self.readiness_penalty

    def as_dict(self) -> dict[str, int]:
        return {
            "severity_weight": self.severity_weight,
            "code_priority": self.code_priority,
            "blast_radius": self.blast_radius,
            "readiness_penalty": self.readiness_penalty,
            "total_score": self.total,
        }


@dataclass(frozen=True)
class RankedFinding:
    """A finding paired with its score; ``position`` is its first-seen index."""

    finding: Finding
    score: int
    breakdown: ScoreBreakdown
    position: int = 0


@dataclass(frozen=True)
class PrimaryFailureDebug:
    """Explains why the primary failure was chosen. Informational only."""

    chosen_by: str
    score: int
    score_breakdown: dict[str, int]
    competing_findings: tuple[str, ...]


@dataclass(frozen=True)
class RankingResult:
    """Output of the finding ranker."""

    primary_failure: Finding | None = None
    top_warning: Finding | None = None
    primary_failure_debug: PrimaryFailureDebug | None = None
    ranked: tuple[RankedFinding, ...] = ()


@dataclass(frozen=True)
class Health:
    """Overall status plus display counters derived from the snapshot."""

    overall: OverallStatus
    deployments_ready: str  # e.g. "1/2"
    pods: dict[str, int] = field(default_factory=dict)


@dataclass
class PipelineMeta:
    """Returned alongside the findings of a pipeline run."""

    detectors_run: int = 0
    detectors_failed: int = 0
    duration_ms: float = 0.0
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TriageReport:
    """Unified output of one triage request."""

    health: Health
    findings: tuple[Finding, ...]
    primary_failure: Finding | None = None
    top_warning: Finding | None = None
    primary_failure_debug: PrimaryFailureDebug | None = None
    meta: PipelineMeta = field(default_factory=PipelineMeta)
