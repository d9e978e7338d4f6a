"""Pod restarts detector.

Flags pods that are currently Running and Ready but have restarted. This is
a risk signal (WARN): the pods work now, but transient crashes, OOM kills or
unstable startup may resurface. Crash loops, which need current instability,
are handled by the pod-phase detector.
"""

from __future__ import annotations

from kubetriage.detection.base import Detector
from kubetriage.models.findings import Evidence, FailureCode, Finding
from kubetriage.models.snapshot import ClusterSnapshot, DetectionContext


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


class PodRestartsDetector(Detector):
    """Aggregates restarted-but-healthy pods into one WARN finding."""

    detector_id = "pod-restarts"
    order = 10

    def detect(self, snapshot: ClusterSnapshot, ctx: DetectionContext) -> list[Finding]:
        evidence: list[Evidence] = []
        total_restarts = 0

        for pod in snapshot.pods:
            if not (pod.is_running and pod.ready and pod.restart_count > 0):
                continue
            total_restarts += pod.restart_count
            msg = f"{_plural(pod.restart_count, 'restart')} (currently Ready)"
            if pod.reason:
                msg += f" - Last reason: {pod.reason}"
            evidence.append(Evidence("Pod", pod.name, msg))

        if not evidence:
            return []

        if len(evidence) == 1:
            explanation = (
                f"Pod has restarted {_plural(total_restarts, 'time')} but is currently running. "
                "This may indicate transient crashes, config reloads, or unstable startup behavior."
            )
        else:
            explanation = (
                f"{len(evidence)} pods have restarted {total_restarts} total times but are currently "
                "running. This may indicate transient crashes, config reloads, or unstable startup behavior."
            )

        return [
            Finding.create(
                FailureCode.POD_RESTARTS_DETECTED,
                "Pod restarts detected",
                explanation,
                evidence,
                [
                    f"Review pod logs for crash patterns: kubectl logs <pod> -n {ctx.namespace} --previous",
                    "Check if restarts correlate with deployments or config changes.",
                    "Verify readiness/liveness probe settings are appropriate for startup time.",
                    f"Look for OOM events (exit code 137): kubectl describe pod <pod> -n {ctx.namespace}",
                ],
            )
        ]
