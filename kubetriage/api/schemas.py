"""Pydantic response models for a serialised TriageReport.

All models use Pydantic v2 syntax. Field names are snake_case; enum values
are emitted as their string values.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from kubetriage.models.analysis import Health, PrimaryFailureDebug, TriageReport
from kubetriage.models.findings import Evidence, Finding

# ---------------------------------------------------------------------------
# Component models
# ---------------------------------------------------------------------------


class EvidenceSchema(BaseModel):
    """One object implicated by a finding."""

    kind: str = Field(..., description="Object kind.", examples=["Pod", "Event", "Namespace"])
    name: str = Field(..., description="Object name.", examples=["api-7d9f8-abcde"])
    message: str | None = Field(default=None, description="Human-readable context for this object.")

    @classmethod
    def from_evidence(cls, evidence: Evidence) -> EvidenceSchema:
        return cls(kind=evidence.kind, name=evidence.name, message=evidence.message)


class FindingSchema(BaseModel):
    """A single diagnosed problem."""

    code: str = Field(..., description="Failure code.", examples=["CRASH_LOOP", "IMAGE_PULL_FAILED"])
    severity: str = Field(..., description="ERROR, WARN or INFO.", examples=["ERROR"])
    owner: str = Field(..., description="Team that typically owns the fix.", examples=["APP", "PLATFORM"])
    title: str = Field(..., description="Short headline.")
    explanation: str = Field(..., description="What was observed and what it usually means.")
    evidence: list[EvidenceSchema] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list, description="Ordered remediation hints.")

    @classmethod
    def from_finding(cls, finding: Finding) -> FindingSchema:
        return cls(
            code=finding.code.value,
            severity=finding.severity.value,
            owner=finding.owner.value,
            title=finding.title,
            explanation=finding.explanation,
            evidence=[EvidenceSchema.from_evidence(e) for e in finding.evidence],
            next_steps=list(finding.next_steps),
        )


class HealthSchema(BaseModel):
    """Overall status plus display counters."""

    overall: str = Field(..., description="PASS, WARN, FAIL or UNKNOWN.", examples=["FAIL"])
    deployments_ready: str = Field(..., description="Ready over desired replicas.", examples=["1/2"])
    pods: dict[str, int] = Field(default_factory=dict, description="Pod counts by bucket.")

    @classmethod
    def from_health(cls, health: Health) -> HealthSchema:
        return cls(overall=health.overall.value, deployments_ready=health.deployments_ready, pods=dict(health.pods))


class PrimaryFailureDebugSchema(BaseModel):
    """Why the primary failure was chosen."""

    chosen_by: str
    score: int
    score_breakdown: dict[str, int] = Field(default_factory=dict)
    competing_findings: list[str] = Field(
        default_factory=list,
        description="Every candidate as CODE(score), highest first.",
        examples=[["CRASH_LOOP(415)", "POD_RESTARTS_DETECTED(225)"]],
    )

    @classmethod
    def from_debug(cls, debug: PrimaryFailureDebug) -> PrimaryFailureDebugSchema:
        return cls(
            chosen_by=debug.chosen_by,
            score=debug.score,
            score_breakdown=dict(debug.score_breakdown),
            competing_findings=list(debug.competing_findings),
        )


class PipelineMetaSchema(BaseModel):
    """Detector pipeline bookkeeping."""

    detectors_run: int = 0
    detectors_failed: int = 0
    duration_ms: float = 0.0
    warnings: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Report model
# ---------------------------------------------------------------------------


class TriageReportSchema(BaseModel):
    """Serialised output of one triage request."""

    health: HealthSchema
    findings: list[FindingSchema] = Field(default_factory=list)
    primary_failure: FindingSchema | None = None
    top_warning: FindingSchema | None = None
    primary_failure_debug: PrimaryFailureDebugSchema | None = None
    meta: PipelineMetaSchema = Field(default_factory=PipelineMetaSchema)

    @classmethod
    def from_report(cls, report: TriageReport, *, include_debug: bool = True) -> TriageReportSchema:
        """Convert a TriageReport; ``include_debug=False`` drops the score debug block."""
        debug = report.primary_failure_debug if include_debug else None
        return cls(
            health=HealthSchema.from_health(report.health),
            findings=[FindingSchema.from_finding(f) for f in report.findings],
            primary_failure=FindingSchema.from_finding(report.primary_failure) if report.primary_failure else None,
            top_warning=FindingSchema.from_finding(report.top_warning) if report.top_warning else None,
            primary_failure_debug=PrimaryFailureDebugSchema.from_debug(debug) if debug else None,
            meta=PipelineMetaSchema(
                detectors_run=report.meta.detectors_run,
                detectors_failed=report.meta.detectors_failed,
                duration_ms=report.meta.duration_ms,
                warnings=list(report.meta.warnings),
            ),
        )
