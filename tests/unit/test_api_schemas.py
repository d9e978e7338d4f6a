"""Tests for kubetriage.api.schemas: TriageReport serialisation."""

from __future__ import annotations

import json

from kubetriage.analyst.coordinator import TriageCoordinator
from kubetriage.api.schemas import (
    EvidenceSchema,
    FindingSchema,
    HealthSchema,
    TriageReportSchema,
)
from kubetriage.detection import build_pipeline
from kubetriage.models.analysis import Health, PipelineMeta, TriageReport
from kubetriage.models.findings import Evidence, FailureCode, Finding, OverallStatus
from kubetriage.models.snapshot import ClusterSnapshot, DetectionContext, PodPhase, PodView, WorkloadView

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _crash_report() -> TriageReport:
    snap = ClusterSnapshot(
        pods=(
            PodView("api-1", PodPhase.RUNNING, ready=False, restart_count=3, reason="CrashLoopBackOff"),
            PodView("api-2", PodPhase.RUNNING, ready=True, restart_count=1),
        ),
        deployments=(WorkloadView("api", 2, 1),),
    )
    return TriageCoordinator(build_pipeline()).triage(snap, DetectionContext(namespace="shop"))


# ---------------------------------------------------------------------------
# Component models
# ---------------------------------------------------------------------------


class TestFindingSchema:
    def test_enum_values_are_strings(self) -> None:
        finding = Finding.create(
            FailureCode.RBAC_DENIED,
            "RBAC permission denied",
            "denied",
            [Evidence("Event", "api-1", "forbidden")],
            ["check roles"],
        )
        schema = FindingSchema.from_finding(finding)
        assert schema.code == "RBAC_DENIED"
        assert schema.severity == "ERROR"
        assert schema.owner == "SECURITY"
        assert schema.evidence == [EvidenceSchema(kind="Event", name="api-1", message="forbidden")]
        assert schema.next_steps == ["check roles"]

    def test_evidence_message_optional(self) -> None:
        assert EvidenceSchema.from_evidence(Evidence("Namespace", "shop")).message is None


class TestHealthSchema:
    def test_from_health(self) -> None:
        schema = HealthSchema.from_health(Health(OverallStatus.WARN, "2/2", {"running": 2}))
        assert schema.model_dump() == {"overall": "WARN", "deployments_ready": "2/2", "pods": {"running": 2}}


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


class TestTriageReportSchema:
    def test_from_report(self) -> None:
        schema = TriageReportSchema.from_report(_crash_report())
        assert schema.health.overall == "FAIL"
        assert [f.code for f in schema.findings] == ["CRASH_LOOP", "POD_RESTARTS_DETECTED"]
        assert schema.primary_failure is not None
        assert schema.primary_failure.code == "CRASH_LOOP"
        assert schema.top_warning is not None
        assert schema.top_warning.code == "POD_RESTARTS_DETECTED"
        assert schema.primary_failure_debug is not None
        assert schema.primary_failure_debug.competing_findings[0].startswith("CRASH_LOOP(")

    def test_json_keys_are_snake_case(self) -> None:
        data = json.loads(TriageReportSchema.from_report(_crash_report()).model_dump_json())
        assert set(data) == {
            "health",
            "findings",
            "primary_failure",
            "top_warning",
            "primary_failure_debug",
            "meta",
        }
        assert set(data["primary_failure_debug"]["score_breakdown"]) == {
            "severity_weight",
            "code_priority",
            "blast_radius",
            "readiness_penalty",
            "total_score",
        }

    def test_include_debug_false(self) -> None:
        schema = TriageReportSchema.from_report(_crash_report(), include_debug=False)
        assert schema.primary_failure_debug is None
        assert schema.primary_failure is not None

    def test_meta_copied(self) -> None:
        meta = PipelineMeta(detectors_run=3, detectors_failed=1, duration_ms=1.5, warnings=["x raised"])
        report = TriageReport(health=Health(OverallStatus.PASS, "0/0"), findings=(), meta=meta)
        schema = TriageReportSchema.from_report(report)
        assert schema.meta.detectors_failed == 1
        assert schema.meta.warnings == ["x raised"]
        assert schema.findings == []
        assert schema.primary_failure is None

    def test_round_trip_validation(self) -> None:
        dumped = TriageReportSchema.from_report(_crash_report()).model_dump()
        assert TriageReportSchema.model_validate(dumped).model_dump() == dumped
