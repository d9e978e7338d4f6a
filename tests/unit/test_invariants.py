"""End-to-end invariants of the triage pipeline.

Each scenario runs the full default detector set, health aggregation and
ranking against a hand-built snapshot.
"""

from __future__ import annotations

from kubetriage.analyst.coordinator import TriageCoordinator
from kubetriage.detection import build_pipeline
from kubetriage.models.analysis import TriageReport
from kubetriage.models.findings import FailureCode, OverallStatus, Severity
from kubetriage.models.snapshot import (
    ClusterSnapshot,
    DetectionContext,
    EventView,
    InvolvedObject,
    PodPhase,
    PodView,
    WorkloadView,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_CTX = DetectionContext(namespace="shop", selector="app=api")


def _triage(snapshot: ClusterSnapshot) -> TriageReport:
    return TriageCoordinator(build_pipeline()).triage(snapshot, _CTX)


def _codes(report: TriageReport) -> list[FailureCode]:
    return [f.code for f in report.findings]


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestNoMatchingObjects:
    def test_empty_snapshot_is_unknown(self) -> None:
        report = _triage(ClusterSnapshot())
        assert _codes(report) == [FailureCode.NO_MATCHING_OBJECTS]
        assert report.health.overall is OverallStatus.UNKNOWN
        assert report.primary_failure is not None
        assert report.primary_failure.code is FailureCode.NO_MATCHING_OBJECTS
        assert report.top_warning is None


class TestImagePullAggregation:
    def test_three_pods_one_finding(self) -> None:
        pods = tuple(
            PodView(f"api-{i}", PodPhase.PENDING, ready=False, reason="ImagePullBackOff") for i in range(3)
        )
        report = _triage(ClusterSnapshot(pods=pods, deployments=(WorkloadView("api", 3, 0),)))
        assert _codes(report) == [FailureCode.IMAGE_PULL_FAILED]
        assert len(report.findings[0].evidence) == 3
        assert report.health.overall is OverallStatus.FAIL


class TestRestartsOnHealthyPods:
    def test_warn_without_primary(self) -> None:
        pods = (
            PodView("api-1", PodPhase.RUNNING, ready=True, restart_count=3),
            PodView("api-2", PodPhase.RUNNING, ready=True, restart_count=1),
        )
        report = _triage(ClusterSnapshot(pods=pods, deployments=(WorkloadView("api", 2, 2),)))
        assert _codes(report) == [FailureCode.POD_RESTARTS_DETECTED]
        finding = report.findings[0]
        assert finding.severity is Severity.WARN
        assert "4 total times" in finding.explanation
        assert report.health.overall is OverallStatus.WARN
        assert report.top_warning == finding
        assert report.primary_failure is None


class TestEventAggregation:
    def test_five_secret_events_one_finding(self) -> None:
        pods = tuple(PodView(f"api-{i}", PodPhase.PENDING, ready=False, reason="ContainerCreating") for i in range(5))
        events = tuple(
            EventView(
                "Warning",
                "FailedMount",
                f"MountVolume.SetUp failed: secretproviderclass kv not found for api-{i}",
                InvolvedObject("Pod", f"api-{i}"),
            )
            for i in range(5)
        )
        report = _triage(ClusterSnapshot(pods=pods, events=events))
        secret = [f for f in report.findings if f.code is FailureCode.EXTERNAL_SECRET_RESOLUTION_FAILED]
        assert len(secret) == 1
        assert len(secret[0].evidence) == 5


class TestDeterminism:
    def test_repeated_runs_identical(self) -> None:
        snap = ClusterSnapshot(
            pods=(
                PodView("a", PodPhase.RUNNING, ready=False, reason="CrashLoopBackOff"),
                PodView("b", PodPhase.PENDING, ready=False, reason="ErrImagePull"),
                PodView("c", PodPhase.RUNNING, ready=True, restart_count=2),
            ),
            deployments=(WorkloadView("api", 3, 1),),
            events=(EventView("Warning", "SandboxChanged", "sandbox changed", InvolvedObject("Pod", "c")),),
        )
        first = _triage(snap)
        for _ in range(5):
            again = _triage(snap)
            assert again.findings == first.findings
            assert again.primary_failure == first.primary_failure
            assert again.top_warning == first.top_warning
            assert again.primary_failure_debug == first.primary_failure_debug


class TestDefensiveCorrelation:
    def test_backoff_for_absent_pod(self) -> None:
        snap = ClusterSnapshot(
            pods=(PodView("api-1", PodPhase.RUNNING, ready=True),),
            deployments=(WorkloadView("api", 1, 1),),
            events=(
                EventView(
                    "Warning",
                    "BackOff",
                    "Back-off restarting failed container",
                    InvolvedObject("Pod", "ghost"),
                ),
            ),
        )
        report = _triage(snap)
        assert report.findings == ()
        assert all(e.name != "ghost" for f in report.findings for e in f.evidence)
        assert report.health.overall is OverallStatus.PASS
        assert report.health.pods["crash_loop"] == 0

    def test_backoff_on_recovered_pod_is_only_a_restart_warning(self) -> None:
        snap = ClusterSnapshot(
            pods=(PodView("api-1", PodPhase.RUNNING, ready=True, restart_count=2),),
            deployments=(WorkloadView("api", 1, 1),),
            events=(
                EventView(
                    "Warning",
                    "BackOff",
                    "Back-off restarting failed container",
                    InvolvedObject("Pod", "api-1"),
                ),
            ),
        )
        report = _triage(snap)
        assert _codes(report) == [FailureCode.POD_RESTARTS_DETECTED]
        assert report.health.overall is OverallStatus.WARN
        assert report.primary_failure is None


class TestCrashLoopPrecedence:
    def test_crash_loop_only(self) -> None:
        pods = tuple(
            PodView(f"api-{i}", PodPhase.RUNNING, ready=False, restart_count=5, reason="CrashLoopBackOff")
            for i in range(3)
        )
        snap = ClusterSnapshot(
            pods=pods,
            deployments=(WorkloadView("api", 2, 0), WorkloadView("worker", 1, 0)),
        )
        report = _triage(snap)
        assert _codes(report) == [FailureCode.CRASH_LOOP]
        assert report.health.overall is OverallStatus.FAIL
        assert report.primary_failure is not None
        assert report.primary_failure.code is FailureCode.CRASH_LOOP
        assert report.top_warning is None

    def test_crash_loop_with_backoff_events_reported_once(self) -> None:
        pods = tuple(
            PodView(f"api-{i}", PodPhase.RUNNING, ready=False, restart_count=5, reason="CrashLoopBackOff")
            for i in range(3)
        )
        events = tuple(
            EventView("Warning", "BackOff", "Back-off restarting failed container", InvolvedObject("Pod", f"api-{i}"))
            for i in range(3)
        )
        report = _triage(ClusterSnapshot(pods=pods, deployments=(WorkloadView("api", 3, 0),), events=events))
        assert _codes(report) == [FailureCode.CRASH_LOOP]
        assert [e.name for e in report.findings[0].evidence] == ["api-0", "api-1", "api-2"]
        assert report.primary_failure_debug is not None
        assert len(report.primary_failure_debug.competing_findings) == 1

    def test_image_pull_with_pull_events_reported_once(self) -> None:
        pods = tuple(PodView(f"api-{i}", PodPhase.PENDING, ready=False, reason="ErrImagePull") for i in range(2))
        events = tuple(
            EventView("Warning", "Failed", "Failed to pull image nginx:nope", InvolvedObject("Pod", f"api-{i}"))
            for i in range(2)
        )
        report = _triage(ClusterSnapshot(pods=pods, deployments=(WorkloadView("api", 2, 0),), events=events))
        assert _codes(report) == [FailureCode.IMAGE_PULL_FAILED]
        assert len(report.findings[0].evidence) == 2


class TestEveryNonGatingFindingHasEvidence:
    def test_evidence_present(self) -> None:
        snap = ClusterSnapshot(
            pods=(
                PodView("a", PodPhase.RUNNING, ready=False),
                PodView("b", PodPhase.PENDING, ready=False),
                PodView("c", PodPhase.RUNNING, ready=True, restart_count=1),
            ),
            events=(EventView("Warning", "FailedCreate", "forbidden", InvolvedObject("Pod", "a")),),
        )
        report = _triage(snap)
        assert report.findings
        for finding in report.findings:
            assert finding.evidence
