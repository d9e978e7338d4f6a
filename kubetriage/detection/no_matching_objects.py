"""No-matching-objects gating detector.

Fires when the snapshot holds neither pods nor deployments. Health cannot be
assessed in that case (UNKNOWN); it does not mean the workload is healthy.
"""

from __future__ import annotations

from kubetriage.detection.base import Detector
from kubetriage.models.findings import Evidence, FailureCode, Finding
from kubetriage.models.snapshot import ClusterSnapshot, DetectionContext


class NoMatchingObjectsDetector(Detector):
    """Emits a single NO_MATCHING_OBJECTS finding for an empty snapshot."""

    detector_id = "no-matching-objects"
    order = -1000

    def detect(self, snapshot: ClusterSnapshot, ctx: DetectionContext) -> list[Finding]:
        if not snapshot.is_empty():
            return []

        scope = ctx.selector or (f"release={ctx.release}" if ctx.release else "<all>")
        return [
            Finding.create(
                FailureCode.NO_MATCHING_OBJECTS,
                "No matching objects",
                "No pods or deployments matched the provided selector/release in this namespace.",
                [Evidence("Namespace", ctx.namespace, f"selector: {scope}")],
                [
                    "Verify the selector or release parameter is correct.",
                    f"Check that resources exist in the namespace: kubectl get pods,deployments -n {ctx.namespace}",
                    "Confirm you're connected to the correct cluster and namespace.",
                ],
            )
        ]
