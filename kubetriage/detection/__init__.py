"""Detector registry and public API for the detection module.

Detectors are registered from an explicit, statically ordered list; there is
no filesystem or reflection-based discovery. Run order is decided by the
pipeline from each detector's (order, detector_id).

Usage::

    from kubetriage.detection import build_pipeline

    pipeline = build_pipeline()
    findings, meta = pipeline.run(snapshot, ctx)
"""

from __future__ import annotations

from collections.abc import Callable

from kubetriage.detection.base import Detector, DetectorPipeline
from kubetriage.detection.event_driven import EventDrivenDetector
from kubetriage.detection.event_mapper import EventFindingMapper
from kubetriage.detection.no_matching_objects import NoMatchingObjectsDetector
from kubetriage.detection.pod_phase import PodPhaseDetector
from kubetriage.detection.pod_restarts import PodRestartsDetector
from kubetriage.detection.rollout_stuck import RolloutStuckDetector
from kubetriage.detection.service_endpoints import ServiceEndpointsDetector
from kubetriage.observability.logging import get_logger

__all__ = [
    "DETECTOR_IDS",
    "Detector",
    "DetectorPipeline",
    "EventFindingMapper",
    "build_pipeline",
]

_logger = get_logger("detector_registry")

_Factory = Callable[[EventFindingMapper], Detector]

_REGISTRY: tuple[tuple[str, _Factory], ...] = (
    (NoMatchingObjectsDetector.detector_id, lambda _m: NoMatchingObjectsDetector()),
    (PodPhaseDetector.detector_id, lambda m: PodPhaseDetector(m)),
    (EventDrivenDetector.detector_id, lambda m: EventDrivenDetector(m)),
    (PodRestartsDetector.detector_id, lambda _m: PodRestartsDetector()),
    (RolloutStuckDetector.detector_id, lambda _m: RolloutStuckDetector()),
    (ServiceEndpointsDetector.detector_id, lambda _m: ServiceEndpointsDetector()),
)

DETECTOR_IDS: frozenset[str] = frozenset(detector_id for detector_id, _ in _REGISTRY)


def build_pipeline(
    mapper: EventFindingMapper | None = None,
    *,
    disabled: frozenset[str] = frozenset(),
    max_workers: int = 1,
) -> DetectorPipeline:
    """Construct a DetectorPipeline with every registered detector.

    Args:
        mapper: Event classification table shared by the pod-phase and
            event-driven detectors.
            Defaults to the built-in table.
        disabled: Detector ids to leave out. Unknown ids are logged and ignored.
        max_workers: Thread fan-out for detector execution; 1 runs sequentially.

    Returns:
        A DetectorPipeline with detectors sorted by (order, detector_id).
    """
    mapper = mapper or EventFindingMapper()
    unknown = sorted(disabled - DETECTOR_IDS)
    if unknown:
        _logger.warning("detector_unknown_disabled", detector_ids=unknown)

    pipeline = DetectorPipeline(max_workers=max_workers)
    for detector_id, factory in _REGISTRY:
        if detector_id in disabled:
            continue
        pipeline.register(factory(mapper))

    _logger.info(
        "pipeline_built",
        registered=[d.detector_id for d in pipeline.detectors],
        skipped=sorted(disabled & DETECTOR_IDS),
        max_workers=max_workers,
    )
    return pipeline
