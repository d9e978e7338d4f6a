"""Finding ranker: deterministic, explainable scoring and selection.

The formula is identical for every finding; only the inputs vary:

    score = severity_weight(severity)
          + code_priority(code)
          + blast_radius(evidence count)
          - readiness_penalty

Higher score ranks first. Ties keep first-seen order, so identical input
always yields identical output. The weights are a tunable default policy.

Selection contracts:
    primary_failure  -- set iff health is FAIL or UNKNOWN. UNKNOWN selects the
                        gating finding; FAIL selects the best ERROR finding.
    top_warning      -- best WARN finding (gating findings excluded),
                        independent of primary_failure and of health.

Debug metadata is informational only and never feeds back into selection.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from kubetriage.analyst.health import compute_overall, deployments_fully_ready
from kubetriage.models.analysis import PrimaryFailureDebug, RankedFinding, RankingResult, ScoreBreakdown
from kubetriage.models.findings import FailureCode, Finding, OverallStatus, Severity
from kubetriage.models.snapshot import ClusterSnapshot
from kubetriage.observability.logging import get_logger

_logger = get_logger("ranker")

SEVERITY_WEIGHTS: dict[Severity, int] = {
    Severity.ERROR: 300,
    Severity.WARN: 200,
    Severity.INFO: 100,
}

# Operator impact: hard outages above soft signals.
CODE_PRIORITIES: dict[FailureCode, int] = {
    FailureCode.NO_MATCHING_OBJECTS: 100,
    FailureCode.EXTERNAL_SECRET_RESOLUTION_FAILED: 90,
    FailureCode.BAD_CONFIG: 85,
    FailureCode.IMAGE_PULL_FAILED: 80,
    FailureCode.RBAC_DENIED: 75,
    FailureCode.CRASH_LOOP: 70,
    FailureCode.ROLLOUT_STUCK: 60,
    FailureCode.INSUFFICIENT_RESOURCES: 40,
    FailureCode.READINESS_CHECK_FAILED: 35,
    FailureCode.SERVICE_SELECTOR_MISMATCH: 30,
    FailureCode.POD_SANDBOX_RECYCLE: 20,
    FailureCode.POD_RESTARTS_DETECTED: 10,
}

BLAST_RADIUS_SCALE = 15
BLAST_RADIUS_CAP = 50
READINESS_PENALTY = 25

CHOSEN_BY = "FindingRanker"


def severity_weight(severity: Severity) -> int:
    return SEVERITY_WEIGHTS.get(severity, 0)


def code_priority(code: FailureCode) -> int:
    return CODE_PRIORITIES.get(code, 0)


def blast_radius(evidence_count: int) -> int:
    """Grow with evidence count at a diminishing (logarithmic) rate, capped.

    1 object -> 15, 2 -> 24, 3 -> 30, 7 -> 45, 9 or more -> 50.
    """
    if evidence_count <= 0:
        return 0
    return min(BLAST_RADIUS_CAP, round(BLAST_RADIUS_SCALE * math.log2(1 + evidence_count)))


def readiness_penalty(finding: Finding, workload_ready: bool) -> int:
    """Penalty for non-ERROR findings on a rollout whose readiness is fully satisfied."""
    if workload_ready and finding.severity != Severity.ERROR:
        return READINESS_PENALTY
    return 0


def score_finding(finding: Finding, workload_ready: bool) -> ScoreBreakdown:
    """Compute the per-factor breakdown for one finding."""
    return ScoreBreakdown(
        severity_weight=severity_weight(finding.severity),
        code_priority=code_priority(finding.code),
        blast_radius=blast_radius(len(finding.evidence)),
        readiness_penalty=-readiness_penalty(finding, workload_ready),
    )


def _best(candidates: Sequence[RankedFinding]) -> RankedFinding | None:
    """Highest score; the earliest candidate wins a tie."""
    if not candidates:
        return None
    return min(candidates, key=lambda r: (-r.score, r.position))


class FindingRanker:
    """Reduces a finding list to primary failure, top warning and debug metadata."""

    def rank_all(self, findings: Sequence[Finding], snapshot: ClusterSnapshot) -> list[RankedFinding]:
        """Score every finding, preserving input order."""
        workload_ready = deployments_fully_ready(snapshot)
        ranked: list[RankedFinding] = []
        for position, finding in enumerate(findings):
            breakdown = score_finding(finding, workload_ready)
            ranked.append(RankedFinding(finding=finding, score=breakdown.total, breakdown=breakdown, position=position))
        return ranked

    def rank(
        self,
        findings: Sequence[Finding],
        snapshot: ClusterSnapshot,
        overall: OverallStatus | None = None,
    ) -> RankingResult:
        """Select primary failure and top warning. Never raises on empty input.

        ``overall`` defaults to the status computed from ``findings``.
        """
        if overall is None:
            overall = compute_overall(findings)

        ranked = self.rank_all(findings, snapshot)
        if not ranked:
            return RankingResult()

        primary: RankedFinding | None = None
        if overall == OverallStatus.UNKNOWN:
            primary = next((r for r in ranked if r.finding.is_gating), None)
        elif overall == OverallStatus.FAIL:
            primary = _best([r for r in ranked if r.finding.severity == Severity.ERROR])

        top_warning = _best([r for r in ranked if r.finding.severity == Severity.WARN and not r.finding.is_gating])

        debug: PrimaryFailureDebug | None = None
        if primary is not None:
            ordered = sorted(ranked, key=lambda r: (-r.score, r.position))
            debug = PrimaryFailureDebug(
                chosen_by=CHOSEN_BY,
                score=primary.score,
                score_breakdown=primary.breakdown.as_dict(),
                competing_findings=tuple(f"{r.finding.code.value}({r.score})" for r in ordered),
            )
            _logger.info(
                "primary_failure_selected",
                code=primary.finding.code.value,
                score=primary.score,
                overall=overall.value,
                candidates=len(ranked),
            )

        return RankingResult(
            primary_failure=primary.finding if primary is not None else None,
            top_warning=top_warning.finding if top_warning is not None else None,
            primary_failure_debug=debug,
            ranked=tuple(ranked),
        )
