"""Detector base class and detector pipeline.

Every failure heuristic inherits from Detector. The DetectorPipeline owns
run ordering, failure isolation and the merge of detector outputs.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor

from kubetriage.models.analysis import PipelineMeta
from kubetriage.models.findings import Finding
from kubetriage.models.snapshot import ClusterSnapshot, DetectionContext
from kubetriage.observability.logging import get_logger
from kubetriage.observability.metrics import detector_failures_total, findings_total

_logger = get_logger("detector_pipeline")


class Detector(ABC):
    """Abstract base class for all detectors.

    Subclasses MUST define class-level attributes:
        detector_id -- stable, unique identifier, e.g. "pod-phase"
        order       -- lower runs earlier; ties broken by detector_id

    detect() MUST be pure and total: read only from the snapshot and the
    context, never perform I/O, and return an empty list (not raise) when its
    evidence sources are absent or empty.
    """

    detector_id: str
    order: int = 0

    @abstractmethod
    def detect(self, snapshot: ClusterSnapshot, ctx: DetectionContext) -> list[Finding]:
        """Return 0-N findings for this snapshot."""


class DetectorPipeline:
    """Runs all registered detectors over one immutable snapshot.

    Run order is fully determined by (order, detector_id). A low-order gating
    detector does not stop the run: downstream detectors still execute and
    simply find nothing when the snapshot is empty.

    A detector that raises is isolated: the exception is logged, counted and
    recorded in PipelineMeta.warnings, and the detector contributes zero
    findings.
    """

    def __init__(self, detectors: list[Detector] | None = None, *, max_workers: int = 1) -> None:
        self._detectors: list[Detector] = []
        self._max_workers = max(1, max_workers)
        for detector in detectors or []:
            self.register(detector)

    @property
    def detectors(self) -> tuple[Detector, ...]:
        return tuple(self._detectors)

    def register(self, detector: Detector) -> None:
        """Add a detector and keep the (order, detector_id) sort.

        Raises ValueError on a duplicate detector_id.
        """
        if any(d.detector_id == detector.detector_id for d in self._detectors):
            raise ValueError(f"Detector already registered: {detector.detector_id}")
        self._detectors.append(detector)
        self._detectors.sort(key=lambda d: (d.order, d.detector_id))

    def run(self, snapshot: ClusterSnapshot, ctx: DetectionContext) -> tuple[list[Finding], PipelineMeta]:
        """Run every detector and concatenate findings in run order."""
        meta = PipelineMeta()
        wall_start = time.monotonic()

        if self._max_workers > 1 and len(self._detectors) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="detector") as pool:
                futures = [pool.submit(self._run_one, d, snapshot, ctx) for d in self._detectors]
                # Merge in registration order, not completion order.
                outcomes = [f.result() for f in futures]
        else:
            outcomes = [self._run_one(d, snapshot, ctx) for d in self._detectors]

        findings: list[Finding] = []
        for detector, (produced, error) in zip(self._detectors, outcomes, strict=True):
            meta.detectors_run += 1
            if error is not None:
                meta.detectors_failed += 1
                meta.warnings.append(f"{detector.detector_id} raised exception during detect: {error}")
                continue
            findings.extend(produced)

        meta.duration_ms = (time.monotonic() - wall_start) * 1000.0
        _logger.info(
            "pipeline_complete",
            detectors_run=meta.detectors_run,
            detectors_failed=meta.detectors_failed,
            findings=len(findings),
            codes=[f.code.value for f in findings],
            namespace=ctx.namespace,
            duration_ms=meta.duration_ms,
        )
        return findings, meta

    @staticmethod
    def _run_one(
        detector: Detector,
        snapshot: ClusterSnapshot,
        ctx: DetectionContext,
    ) -> tuple[list[Finding], Exception | None]:
        try:
            produced = list(detector.detect(snapshot, ctx))
        except Exception as exc:
            _logger.error(
                "detector_exception",
                detector_id=detector.detector_id,
                error=str(exc),
                exc_info=True,
            )
            detector_failures_total.labels(detector_id=detector.detector_id).inc()
            return [], exc

        for finding in produced:
            findings_total.labels(detector_id=detector.detector_id, code=finding.code.value).inc()
        return produced, None
