"""Event-driven detector backed by the EventFindingMapper table.

Warning events are classified one by one and grouped by failure code in
first-seen order. N events sharing a code become exactly one finding with N
evidence entries.

Events on pods missing from the snapshot are dropped. Events on snapshot pods
that classify into a pod-state code are left to the pod-phase detector.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from kubetriage.detection.base import Detector
from kubetriage.detection.event_mapper import EventFindingMapper, MappedFailure
from kubetriage.detection.pod_phase import POD_STATE_CODES
from kubetriage.models.findings import Evidence, FailureCode, Finding
from kubetriage.models.snapshot import ClusterSnapshot, DetectionContext, EventView

_EXPLANATIONS: dict[FailureCode, str] = {
    FailureCode.EXTERNAL_SECRET_RESOLUTION_FAILED: (
        "Pod cannot mount external secrets via SecretProviderClass; container will not start."
    ),
    FailureCode.BAD_CONFIG: (
        "Pod cannot start due to missing or invalid Kubernetes configuration "
        "(Secret/ConfigMap/volume references)."
    ),
    FailureCode.RBAC_DENIED: "Tool or workload is denied by Kubernetes RBAC for required operations.",
    FailureCode.POD_SANDBOX_RECYCLE: (
        "Pod sandbox changed and pod will be killed and re-created. This may indicate node-level "
        "issues, runtime problems, or network policy changes."
    ),
}


def _next_steps(code: FailureCode, namespace: str) -> list[str]:
    if code == FailureCode.EXTERNAL_SECRET_RESOLUTION_FAILED:
        return [
            f"Confirm SecretProviderClass exists in the same namespace: kubectl get secretproviderclass -n {namespace}",
            "Verify Key Vault name/URI and object names match exactly (case-sensitive).",
            "Verify workload identity/managed identity has 'Get' permission on secrets in Key Vault.",
            "Confirm CSI driver is installed: kubectl get pods -n kube-system | grep csi-secrets-store",
            "Check pod service account is correctly annotated for workload identity.",
        ]
    if code == FailureCode.BAD_CONFIG:
        return [
            f"Verify referenced Secret/ConfigMap exists in the namespace: kubectl get secrets,configmaps -n {namespace}",
            "Verify key names in Secret/ConfigMap match the keys referenced in pod spec.",
            "Check volumeMount names match volume definitions.",
            "If using Helm: verify values rendered to expected resource names.",
        ]
    if code == FailureCode.RBAC_DENIED:
        return [
            "Confirm triage service account has list/get/watch permissions for required resources.",
            f"Check workload service account permissions: kubectl describe serviceaccount <sa> -n {namespace}",
            f"Review Role bindings: kubectl get clusterrolebindings,rolebindings -n {namespace}",
            f"Test access: kubectl auth can-i <verb> <resource> --as=system:serviceaccount:{namespace}:<sa>",
        ]
    if code == FailureCode.POD_SANDBOX_RECYCLE:
        return [
            "Check node health: kubectl describe node <node>",
            "Review container runtime logs on the node.",
            "Check for network policy or CNI changes.",
            "Look for node resource pressure or eviction events.",
        ]
    return [
        "Review event details in the evidence section.",
        f"Check pod status: kubectl get pods -n {namespace}",
        f"Describe affected resources: kubectl describe <resource> -n {namespace}",
    ]


@dataclass
class _EventGroup:
    mapped: MappedFailure
    events: list[EventView] = field(default_factory=list)


class EventDrivenDetector(Detector):
    """Turns classified warning events into one finding per failure code."""

    detector_id = "event-driven"
    order = 0

    def __init__(self, mapper: EventFindingMapper | None = None) -> None:
        self._mapper = mapper or EventFindingMapper()

    def detect(self, snapshot: ClusterSnapshot, ctx: DetectionContext) -> list[Finding]:
        pod_names = snapshot.pod_names()
        # dict preserves insertion order: first occurrence fixes group position.
        groups: dict[FailureCode, _EventGroup] = {}
        for event in snapshot.warning_events():
            ref = event.involved_object
            on_pod = ref is not None and ref.kind == "Pod"
            if ref is not None and on_pod and ref.name not in pod_names:
                continue
            mapped = self._mapper.map(event)
            if mapped is None:
                continue
            if on_pod and mapped.code in POD_STATE_CODES:
                # Owned by the pod-phase detector.
                continue
            groups.setdefault(mapped.code, _EventGroup(mapped)).events.append(event)

        return [self._build_finding(group, ctx) for group in groups.values()]

    @staticmethod
    def _build_finding(group: _EventGroup, ctx: DetectionContext) -> Finding:
        mapped = group.mapped
        evidence = [
            Evidence(
                "Event",
                e.involved_object.name if e.involved_object is not None else e.reason,
                e.message,
            )
            for e in group.events
        ]
        count = len(group.events)
        explanation = _EXPLANATIONS.get(
            mapped.code,
            f"{count} warning event{'s' if count > 1 else ''} detected.",
        )
        return Finding(
            code=mapped.code,
            severity=mapped.severity,
            owner=mapped.owner,
            title=mapped.title,
            explanation=explanation,
            evidence=tuple(evidence),
            next_steps=tuple(_next_steps(mapped.code, ctx.namespace)),
        )
