"""Service endpoints detector.

A service with a selector but zero ready endpoint addresses, while pods are
present, usually means a label/selector mismatch or pods gated by readiness.
"""

from __future__ import annotations

from kubetriage.detection.base import Detector
from kubetriage.models.findings import Evidence, FailureCode, Finding
from kubetriage.models.snapshot import ClusterSnapshot, DetectionContext


class ServiceEndpointsDetector(Detector):
    detector_id = "service-endpoints"
    order = 20

    def detect(self, snapshot: ClusterSnapshot, ctx: DetectionContext) -> list[Finding]:
        if not snapshot.pods:
            return []

        evidence: list[Evidence] = []
        for svc in snapshot.services:
            if not svc.selector:
                continue
            eps = snapshot.endpoints_for(svc.name)
            ready = eps.ready_addresses if eps is not None else 0
            not_ready = eps.not_ready_addresses if eps is not None else 0
            if ready == 0:
                evidence.append(Evidence("Service", svc.name, f"0 ready endpoints ({not_ready} not ready)"))

        if not evidence:
            return []

        return [
            Finding.create(
                FailureCode.SERVICE_SELECTOR_MISMATCH,
                "Service selector mismatch",
                "Service has zero ready endpoints due to label/selector mismatch or pods not ready.",
                evidence,
                [
                    f"Compare Service selector labels vs pod labels: kubectl describe service <service> -n {ctx.namespace}",
                    f"Check pod labels: kubectl get pods --show-labels -n {ctx.namespace}",
                    "If pods exist but are not Ready, fix readiness issues first.",
                    f"Test label matching: kubectl get pods -l <selector> -n {ctx.namespace}",
                ],
            )
        ]
