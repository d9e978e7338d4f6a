"""Pod phase/reason detector.

Handles four failure families in a single pass over the pods:
    IMAGE_PULL_FAILED       -- ImagePullBackOff / ErrImagePull
    CRASH_LOOP              -- CrashLoopBackOff, or BackOff warning events
    READINESS_CHECK_FAILED  -- Running but not Ready
    INSUFFICIENT_RESOURCES  -- Pending

Each family yields at most one finding that aggregates every matching pod as
evidence, so N failing replicas of one rollout produce one finding, not N.

Warning events on snapshot pods that classify into one of these families are
folded into the pod's evidence here. The event-driven detector leaves them
alone, so one failure on one pod is reported once.
"""

from __future__ import annotations

from kubetriage.detection.base import Detector
from kubetriage.detection.event_mapper import EventFindingMapper
from kubetriage.models.findings import Evidence, FailureCode, Finding
from kubetriage.models.snapshot import ClusterSnapshot, DetectionContext, EventView, PodView

# Failure codes derived from pod state. Events on pods that map to one of
# these only corroborate the pod, they never stand alone.
POD_STATE_CODES: frozenset[FailureCode] = frozenset(
    {
        FailureCode.IMAGE_PULL_FAILED,
        FailureCode.CRASH_LOOP,
        FailureCode.INSUFFICIENT_RESOURCES,
    }
)


def pod_event_signals(
    snapshot: ClusterSnapshot,
    mapper: EventFindingMapper | None = None,
) -> dict[str, dict[FailureCode, EventView]]:
    """Pod-state failure signals carried by warning events, keyed by pod name.

    Only pods present in the snapshot are considered, so events naming absent
    pods never contribute. The first matching event per (pod, code) is kept.
    """
    mapper = mapper or EventFindingMapper()
    signals: dict[str, dict[FailureCode, EventView]] = {}
    for pod in snapshot.pods:
        for event in snapshot.events_for_pod(pod.name):
            mapped = mapper.map(event)
            if mapped is None or mapped.code not in POD_STATE_CODES:
                continue
            signals.setdefault(pod.name, {}).setdefault(mapped.code, event)
    return signals


def backoff_pod_names(snapshot: ClusterSnapshot, mapper: EventFindingMapper | None = None) -> set[str]:
    """Names of not-Ready snapshot pods referenced by a Warning BackOff event.

    Pods that are currently Ready are skipped: a past back-off on a healthy
    pod is a restart signal, not a crash loop. Image pull back-offs share the
    BackOff reason and classify as IMAGE_PULL_FAILED instead.
    """
    not_ready = {p.name for p in snapshot.pods if not p.ready}
    return {
        name
        for name, codes in pod_event_signals(snapshot, mapper).items()
        if name in not_ready and FailureCode.CRASH_LOOP in codes
    }


def _pod_context(pod: PodView, event: EventView | None = None) -> str:
    msg = f"Phase: {pod.phase.value}, Restarts: {pod.restart_count}"
    if pod.reason:
        msg += f", Reason: {pod.reason}"
    if event is not None:
        msg += f", Event: {event.reason}: {event.message}"
    return msg


class PodPhaseDetector(Detector):
    """Classifies pods by phase and waiting reason."""

    detector_id = "pod-phase"
    order = 0

    def __init__(self, mapper: EventFindingMapper | None = None) -> None:
        self._mapper = mapper or EventFindingMapper()

    def detect(self, snapshot: ClusterSnapshot, ctx: DetectionContext) -> list[Finding]:
        if not snapshot.pods:
            return []

        signals = pod_event_signals(snapshot, self._mapper)

        image_pull: list[Evidence] = []
        crash_loop: list[Evidence] = []
        not_ready: list[Evidence] = []
        pending: list[Evidence] = []

        for pod in snapshot.pods:
            events = signals.get(pod.name, {})
            # Events on a Ready pod are history, not current state.
            pull_event = events.get(FailureCode.IMAGE_PULL_FAILED) if not pod.ready else None
            crash_event = events.get(FailureCode.CRASH_LOOP) if not pod.ready else None
            pulling = pod.has_image_pull_backoff or pull_event is not None
            crashing = pod.has_crash_loop_backoff or crash_event is not None
            if pulling:
                image_pull.append(Evidence("Pod", pod.name, _pod_context(pod, pull_event)))
            if crashing:
                crash_loop.append(Evidence("Pod", pod.name, _pod_context(pod, crash_event)))
            # A pod is attributed to its harder failure only once.
            if pod.is_running and not pod.ready and not crashing:
                not_ready.append(Evidence("Pod", pod.name, _pod_context(pod)))
            if pod.is_pending and not pulling and not crashing:
                sched_event = events.get(FailureCode.INSUFFICIENT_RESOURCES)
                pending.append(Evidence("Pod", pod.name, _pod_context(pod, sched_event)))

        findings: list[Finding] = []
        if image_pull:
            findings.append(_image_pull_finding(image_pull))
        if crash_loop:
            findings.append(_crash_loop_finding(crash_loop, ctx))
        if not_ready:
            findings.append(_readiness_finding(not_ready, ctx))
        if pending:
            findings.append(_insufficient_resources_finding(pending, ctx))
        return findings


def _image_pull_finding(evidence: list[Evidence]) -> Finding:
    return Finding.create(
        FailureCode.IMAGE_PULL_FAILED,
        "Image pull failed",
        "Container image cannot be pulled (authentication, missing tag, or registry access issue).",
        evidence,
        [
            "Verify image tag exists in the registry.",
            "Verify imagePullSecrets are configured if using a private registry.",
            "Check network/egress policy allows access to the registry.",
            "Confirm registry URL is correct (typos in image name/tag).",
            "Test image pull manually: docker pull <image:tag>",
        ],
    )


def _crash_loop_finding(evidence: list[Evidence], ctx: DetectionContext) -> Finding:
    return Finding.create(
        FailureCode.CRASH_LOOP,
        "Crash loop detected",
        "Containers are repeatedly crashing (CrashLoopBackOff, OOM, or non-zero exit codes).",
        evidence,
        [
            f"Inspect last termination reason: kubectl describe pod <pod> -n {ctx.namespace}",
            f"Check logs from previous container instance: kubectl logs <pod> -n {ctx.namespace} --previous",
            "Look for OOMKilled (out of memory): increase memory limits if needed.",
            "Validate required environment variables are set correctly.",
            "Review exit codes: 137 = OOMKilled, 143 = SIGTERM, others = app error",
        ],
    )


def _readiness_finding(evidence: list[Evidence], ctx: DetectionContext) -> Finding:
    return Finding.create(
        FailureCode.READINESS_CHECK_FAILED,
        "Readiness check failed",
        "Pods are running but never become Ready (readiness probe or application health check failing).",
        evidence,
        [
            "Verify readiness probe path/port matches the application endpoint.",
            f"Check application logs for startup errors: kubectl logs <pod> -n {ctx.namespace}",
            "Verify dependencies are reachable (database, cache, external APIs).",
            "Confirm service port mapping matches container port.",
            "Check if initialDelaySeconds is too short for app startup time.",
        ],
    )


def _insufficient_resources_finding(evidence: list[Evidence], ctx: DetectionContext) -> Finding:
    return Finding.create(
        FailureCode.INSUFFICIENT_RESOURCES,
        "Insufficient resources",
        "Pod scheduling is blocked due to insufficient CPU/memory, node capacity, or quotas.",
        evidence,
        [
            "Check resource requests/limits vs node capacity: kubectl describe nodes",
            f"Check namespace resource quotas: kubectl get resourcequotas -n {ctx.namespace}",
            "Check node taints/tolerations: kubectl describe nodes | grep Taint",
            f"View pending pod scheduling issues: kubectl describe pod <pod> -n {ctx.namespace}",
            "Consider reducing resource requests or scaling cluster nodes.",
        ],
    )
