"""Finding taxonomy and the common detector output unit."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Severity(StrEnum):
    """Finding severity level."""

    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"


class Owner(StrEnum):
    """Team a finding is routed to for escalation."""

    APP = "APP"
    PLATFORM = "PLATFORM"
    SECURITY = "SECURITY"
    UNKNOWN = "UNKNOWN"


class OverallStatus(StrEnum):
    """Overall workload health derived from the finding set."""

    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"
    UNKNOWN = "UNKNOWN"


class FailureCode(StrEnum):
    """Closed set of failure codes a detector may emit."""

    BAD_CONFIG = "BAD_CONFIG"
    EXTERNAL_SECRET_RESOLUTION_FAILED = "EXTERNAL_SECRET_RESOLUTION_FAILED"
    IMAGE_PULL_FAILED = "IMAGE_PULL_FAILED"
    READINESS_CHECK_FAILED = "READINESS_CHECK_FAILED"
    CRASH_LOOP = "CRASH_LOOP"
    SERVICE_SELECTOR_MISMATCH = "SERVICE_SELECTOR_MISMATCH"
    INSUFFICIENT_RESOURCES = "INSUFFICIENT_RESOURCES"
    RBAC_DENIED = "RBAC_DENIED"
    POD_RESTARTS_DETECTED = "POD_RESTARTS_DETECTED"
    POD_SANDBOX_RECYCLE = "POD_SANDBOX_RECYCLE"
    NO_MATCHING_OBJECTS = "NO_MATCHING_OBJECTS"
    ROLLOUT_STUCK = "ROLLOUT_STUCK"

    @property
    def default_owner(self) -> Owner:
        return _CODE_DEFAULTS[self][0]

    @property
    def default_severity(self) -> Severity:
        return _CODE_DEFAULTS[self][1]


_CODE_DEFAULTS: dict[FailureCode, tuple[Owner, Severity]] = {
    FailureCode.BAD_CONFIG: (Owner.APP, Severity.ERROR),
    FailureCode.EXTERNAL_SECRET_RESOLUTION_FAILED: (Owner.PLATFORM, Severity.ERROR),
    FailureCode.IMAGE_PULL_FAILED: (Owner.PLATFORM, Severity.ERROR),
    FailureCode.READINESS_CHECK_FAILED: (Owner.APP, Severity.ERROR),
    FailureCode.CRASH_LOOP: (Owner.APP, Severity.ERROR),
    FailureCode.SERVICE_SELECTOR_MISMATCH: (Owner.APP, Severity.WARN),
    FailureCode.INSUFFICIENT_RESOURCES: (Owner.PLATFORM, Severity.ERROR),
    FailureCode.RBAC_DENIED: (Owner.SECURITY, Severity.ERROR),
    FailureCode.POD_RESTARTS_DETECTED: (Owner.APP, Severity.WARN),
    FailureCode.POD_SANDBOX_RECYCLE: (Owner.PLATFORM, Severity.WARN),
    FailureCode.NO_MATCHING_OBJECTS: (Owner.UNKNOWN, Severity.WARN),
    FailureCode.ROLLOUT_STUCK: (Owner.APP, Severity.ERROR),
}

# Findings whose presence means health cannot be assessed at all.
GATING_CODES: frozenset[FailureCode] = frozenset({FailureCode.NO_MATCHING_OBJECTS})


@dataclass(frozen=True)
class Evidence:
    """Reference to one concrete object (pod, event, deployment, ...) backing a finding."""

    kind: str
    name: str
    message: str | None = None


@dataclass(frozen=True)
class Finding:
    """One detector's conclusion about a possible failure cause.

    Every finding except a gating one carries at least one Evidence entry.
    Evidence count equals the number of distinct objects that corroborate the
    finding; many events sharing a cause collapse into a single finding.
    """

    code: FailureCode
    severity: Severity
    owner: Owner
    title: str
    explanation: str
    evidence: tuple[Evidence, ...] = ()
    next_steps: tuple[str, ...] = ()

    @classmethod
    def create(
        cls,
        code: FailureCode,
        title: str,
        explanation: str,
        evidence: list[Evidence] | tuple[Evidence, ...],
        next_steps: list[str] | tuple[str, ...],
    ) -> Finding:
        """Build a finding with owner and severity taken from the code defaults."""
        return cls(
            code=code,
            severity=code.default_severity,
            owner=code.default_owner,
            title=title,
            explanation=explanation,
            evidence=tuple(evidence),
            next_steps=tuple(next_steps),
        )

    @property
    def is_gating(self) -> bool:
        return self.code in GATING_CODES
