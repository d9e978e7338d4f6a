"""Overall health reducer and display counters.

Status precedence:
    UNKNOWN  -- a gating finding fired (nothing to assess)
    FAIL     -- any ERROR finding
    WARN     -- any WARN finding, no ERROR
    PASS     -- otherwise (INFO-only or no findings)
"""

from __future__ import annotations

from collections.abc import Sequence

from kubetriage.detection.pod_phase import backoff_pod_names
from kubetriage.models.analysis import Health
from kubetriage.models.findings import Finding, OverallStatus, Severity
from kubetriage.models.snapshot import ClusterSnapshot


def compute_overall(findings: Sequence[Finding]) -> OverallStatus:
    """Reduce a finding list to a single OverallStatus."""
    if any(f.is_gating for f in findings):
        return OverallStatus.UNKNOWN
    severities = {f.severity for f in findings}
    if Severity.ERROR in severities:
        return OverallStatus.FAIL
    if Severity.WARN in severities:
        return OverallStatus.WARN
    return OverallStatus.PASS


def pod_breakdown(snapshot: ClusterSnapshot) -> dict[str, int]:
    """Bucket pod counts for display. Buckets overlap (a pod can be running and not ready)."""
    counts = {
        "running": 0,
        "pending": 0,
        "crash_loop": 0,
        "image_pull_backoff": 0,
        "not_ready": 0,
    }
    backoff = backoff_pod_names(snapshot)
    for pod in snapshot.pods:
        if pod.is_running:
            counts["running"] += 1
            if not pod.ready:
                counts["not_ready"] += 1
        elif pod.is_pending:
            counts["pending"] += 1
        if pod.has_crash_loop_backoff or pod.name in backoff:
            counts["crash_loop"] += 1
        if pod.has_image_pull_backoff:
            counts["image_pull_backoff"] += 1
    return counts


def deployments_ready(snapshot: ClusterSnapshot) -> str:
    """Return "ready/desired" summed across all deployments, e.g. "1/2"."""
    desired = sum(d.desired_replicas for d in snapshot.deployments)
    ready = sum(d.ready_replicas for d in snapshot.deployments)
    return f"{ready}/{desired}"


def deployments_fully_ready(snapshot: ClusterSnapshot) -> bool:
    """True when at least one deployment exists and every deployment is fully ready."""
    return bool(snapshot.deployments) and all(d.is_fully_ready for d in snapshot.deployments)


def summarize_health(snapshot: ClusterSnapshot, findings: Sequence[Finding]) -> Health:
    return Health(
        overall=compute_overall(findings),
        deployments_ready=deployments_ready(snapshot),
        pods=pod_breakdown(snapshot),
    )
