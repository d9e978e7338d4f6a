"""Unit tests for kubetriage.models: snapshot views, findings and analysis types."""

from __future__ import annotations

import dataclasses

import pytest

from kubetriage.models.analysis import ScoreBreakdown
from kubetriage.models.findings import (
    GATING_CODES,
    Evidence,
    FailureCode,
    Finding,
    Owner,
    Severity,
)
from kubetriage.models.snapshot import (
    ClusterSnapshot,
    DeploymentCondition,
    EndpointsView,
    EventView,
    InvolvedObject,
    PodPhase,
    PodView,
    WorkloadView,
)

# ---------------------------------------------------------------------------
# PodPhase
# ---------------------------------------------------------------------------


class TestPodPhase:
    def test_parse_known_phase(self) -> None:
        assert PodPhase.parse("Running") is PodPhase.RUNNING

    def test_parse_is_case_insensitive(self) -> None:
        assert PodPhase.parse("pending") is PodPhase.PENDING

    def test_parse_none_is_unknown(self) -> None:
        assert PodPhase.parse(None) is PodPhase.UNKNOWN

    def test_parse_garbage_is_unknown(self) -> None:
        assert PodPhase.parse("Exploded") is PodPhase.UNKNOWN


# ---------------------------------------------------------------------------
# PodView
# ---------------------------------------------------------------------------


class TestPodView:
    def test_crash_loop_reason_detected_case_insensitively(self) -> None:
        pod = PodView("p", PodPhase.RUNNING, ready=False, reason="crashloopbackoff")
        assert pod.has_crash_loop_backoff is True
        assert pod.has_image_pull_backoff is False

    @pytest.mark.parametrize("reason", ["ImagePullBackOff", "ErrImagePull"])
    def test_image_pull_reasons(self, reason: str) -> None:
        pod = PodView("p", PodPhase.PENDING, ready=False, reason=reason)
        assert pod.has_image_pull_backoff is True

    def test_no_reason(self) -> None:
        pod = PodView("p", PodPhase.RUNNING, ready=True)
        assert pod.has_crash_loop_backoff is False
        assert pod.has_image_pull_backoff is False

    def test_phase_helpers(self) -> None:
        assert PodView("p", PodPhase.RUNNING, ready=True).is_running is True
        assert PodView("p", PodPhase.PENDING, ready=False).is_pending is True

    def test_is_frozen(self) -> None:
        pod = PodView("p", PodPhase.RUNNING, ready=True)
        with pytest.raises(dataclasses.FrozenInstanceError):
            pod.ready = False  # type: ignore[misc]


# ---------------------------------------------------------------------------
# EventView
# ---------------------------------------------------------------------------


class TestEventView:
    def test_is_warning_case_insensitive(self) -> None:
        assert EventView("warning", "BackOff", "x").is_warning is True
        assert EventView("Normal", "Pulled", "x").is_warning is False

    def test_involved_object_key(self) -> None:
        event = EventView("Warning", "BackOff", "x", InvolvedObject("Pod", "api-1"))
        assert event.involved_object_key == "Pod/api-1"

    def test_involved_object_key_none(self) -> None:
        assert EventView("Warning", "BackOff", "x").involved_object_key is None


# ---------------------------------------------------------------------------
# WorkloadView
# ---------------------------------------------------------------------------


class TestWorkloadView:
    def test_fully_ready(self) -> None:
        assert WorkloadView("api", 2, 2).is_fully_ready is True
        assert WorkloadView("api", 2, 1).is_fully_ready is False

    def test_zero_desired_is_fully_ready(self) -> None:
        assert WorkloadView("api", 0, 0).is_fully_ready is True

    def test_rollout_stuck(self) -> None:
        cond = DeploymentCondition("Progressing", "False", "ProgressDeadlineExceeded")
        assert WorkloadView("api", 2, 0, (cond,)).is_rollout_stuck is True

    def test_progressing_true_is_not_stuck(self) -> None:
        cond = DeploymentCondition("Progressing", "True", "NewReplicaSetAvailable")
        assert WorkloadView("api", 2, 2, (cond,)).is_rollout_stuck is False


# ---------------------------------------------------------------------------
# ClusterSnapshot
# ---------------------------------------------------------------------------


class TestClusterSnapshot:
    def test_empty_snapshot(self) -> None:
        assert ClusterSnapshot().is_empty() is True

    def test_deployment_only_is_not_empty(self) -> None:
        assert ClusterSnapshot(deployments=(WorkloadView("api", 1, 0),)).is_empty() is False

    def test_warning_events_filters_normals(self) -> None:
        snap = ClusterSnapshot(
            events=(EventView("Normal", "Pulled", "ok"), EventView("Warning", "BackOff", "bad")),
        )
        assert [e.reason for e in snap.warning_events()] == ["BackOff"]

    def test_events_for_pod(self) -> None:
        ev_pod = EventView("Warning", "BackOff", "x", InvolvedObject("Pod", "api-1"))
        ev_dep = EventView("Warning", "BackOff", "x", InvolvedObject("Deployment", "api-1"))
        snap = ClusterSnapshot(events=(ev_pod, ev_dep))
        assert snap.events_for_pod("api-1") == [ev_pod]

    def test_endpoints_for(self) -> None:
        eps = EndpointsView("web", 2)
        snap = ClusterSnapshot(endpoints=(eps,))
        assert snap.endpoints_for("web") is eps
        assert snap.endpoints_for("missing") is None

    def test_pod_names(self) -> None:
        snap = ClusterSnapshot(pods=(PodView("a", PodPhase.RUNNING, True), PodView("b", PodPhase.PENDING, False)))
        assert snap.pod_names() == {"a", "b"}


# ---------------------------------------------------------------------------
# FailureCode / Finding
# ---------------------------------------------------------------------------


class TestFailureCode:
    def test_every_code_has_defaults(self) -> None:
        for code in FailureCode:
            assert isinstance(code.default_owner, Owner)
            assert isinstance(code.default_severity, Severity)

    @pytest.mark.parametrize(
        "code",
        [
            FailureCode.POD_RESTARTS_DETECTED,
            FailureCode.POD_SANDBOX_RECYCLE,
            FailureCode.SERVICE_SELECTOR_MISMATCH,
            FailureCode.NO_MATCHING_OBJECTS,
        ],
    )
    def test_warn_codes(self, code: FailureCode) -> None:
        assert code.default_severity is Severity.WARN

    def test_rbac_is_security_owned(self) -> None:
        assert FailureCode.RBAC_DENIED.default_owner is Owner.SECURITY

    def test_gating_codes(self) -> None:
        assert GATING_CODES == frozenset({FailureCode.NO_MATCHING_OBJECTS})


class TestFinding:
    def test_create_fills_defaults(self) -> None:
        finding = Finding.create(
            FailureCode.CRASH_LOOP,
            "Crash loop detected",
            "boom",
            [Evidence("Pod", "api-1")],
            ["look at logs"],
        )
        assert finding.severity is Severity.ERROR
        assert finding.owner is Owner.APP
        assert finding.evidence == (Evidence("Pod", "api-1"),)
        assert finding.next_steps == ("look at logs",)

    def test_is_gating(self) -> None:
        gating = Finding.create(FailureCode.NO_MATCHING_OBJECTS, "t", "e", [Evidence("Namespace", "ns")], [])
        other = Finding.create(FailureCode.BAD_CONFIG, "t", "e", [Evidence("Event", "x")], [])
        assert gating.is_gating is True
        assert other.is_gating is False

    def test_findings_are_hashable_and_comparable(self) -> None:
        a = Finding.create(FailureCode.BAD_CONFIG, "t", "e", [Evidence("Event", "x")], [])
        b = Finding.create(FailureCode.BAD_CONFIG, "t", "e", [Evidence("Event", "x")], [])
        assert a == b
        assert hash(a) == hash(b)


# ---------------------------------------------------------------------------
# ScoreBreakdown
# ---------------------------------------------------------------------------


class TestScoreBreakdown:
    def test_total_includes_negative_penalty(self) -> None:
        breakdown = ScoreBreakdown(severity_weight=200, code_priority=10, blast_radius=15, readiness_penalty=-25)
        assert breakdown.total == 200

    def test_as_dict_keys(self) -> None:
        breakdown = ScoreBreakdown(300, 70, 30)
        assert breakdown.as_dict() == {
            "severity_weight": 300,
            "code_priority": 70,
            "blast_radius": 30,
            "readiness_penalty": 0,
            "total_score": 400,
        }
