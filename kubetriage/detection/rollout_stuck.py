"""Deployment rollout-stuck detector (Progressing=False, ProgressDeadlineExceeded)."""

from __future__ import annotations

from kubetriage.detection.base import Detector
from kubetriage.models.findings import Evidence, FailureCode, Finding
from kubetriage.models.snapshot import ClusterSnapshot, DetectionContext


class RolloutStuckDetector(Detector):
    detector_id = "rollout-stuck"
    order = 20

    def detect(self, snapshot: ClusterSnapshot, ctx: DetectionContext) -> list[Finding]:
        stuck = [d for d in snapshot.deployments if d.is_rollout_stuck]
        if not stuck:
            return []

        names = ", ".join(d.name for d in stuck)
        return [
            Finding.create(
                FailureCode.ROLLOUT_STUCK,
                "Deployment rollout stuck",
                f"Rollout of {names} exceeded its progress deadline (ProgressDeadlineExceeded).",
                [
                    Evidence("Deployment", d.name, f"Ready replicas: {d.ready_replicas}/{d.desired_replicas}")
                    for d in stuck
                ],
                [
                    f"Check deployment status: kubectl describe deployment <deployment> -n {ctx.namespace}",
                    f"Review replica set status: kubectl get rs -n {ctx.namespace}",
                    "Check for pod-level issues preventing rollout.",
                    f"Consider rolling back: kubectl rollout undo deployment/<deployment> -n {ctx.namespace}",
                ],
            )
        ]
