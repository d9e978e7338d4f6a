"""Triage coordinator: snapshot -> detectors -> health -> ranking -> report.

Everything here is an in-memory reduction over one immutable snapshot. The
coordinator never reaches out to the cluster; the snapshot must already be
materialised by the caller.
"""

from __future__ import annotations

import time

from kubetriage.analyst.health import summarize_health
from kubetriage.analyst.ranker import FindingRanker
from kubetriage.detection.base import DetectorPipeline
from kubetriage.models.analysis import TriageReport
from kubetriage.models.snapshot import ClusterSnapshot, DetectionContext
from kubetriage.observability.logging import get_logger, triage_context
from kubetriage.observability.metrics import triage_duration_seconds, triage_total

_logger = get_logger("coordinator")


class TriageCoordinator:
    """Runs one triage request end to end."""

    def __init__(self, pipeline: DetectorPipeline, ranker: FindingRanker | None = None) -> None:
        self._pipeline = pipeline
        self._ranker = ranker or FindingRanker()

    def triage(self, snapshot: ClusterSnapshot, ctx: DetectionContext) -> TriageReport:
        start = time.monotonic()

        with triage_context(ctx.namespace, ctx.selector):
            findings, meta = self._pipeline.run(snapshot, ctx)
            health = summarize_health(snapshot, findings)
            ranking = self._ranker.rank(findings, snapshot, health.overall)

        elapsed = time.monotonic() - start
        triage_total.labels(health=health.overall.value).inc()
        triage_duration_seconds.observe(elapsed)

        _logger.info(
            "triage_complete",
            namespace=ctx.namespace,
            selector=ctx.selector,
            release=ctx.release,
            health=health.overall.value,
            findings=len(findings),
            primary_failure=ranking.primary_failure.code.value if ranking.primary_failure else None,
            top_warning=ranking.top_warning.code.value if ranking.top_warning else None,
            detectors_failed=meta.detectors_failed,
            duration_ms=elapsed * 1000.0,
        )

        return TriageReport(
            health=health,
            findings=tuple(findings),
            primary_failure=ranking.primary_failure,
            top_warning=ranking.top_warning,
            primary_failure_debug=ranking.primary_failure_debug,
            meta=meta,
        )
