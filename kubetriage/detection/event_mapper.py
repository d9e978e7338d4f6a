"""Warning event -> failure code classification table.

Rules are evaluated in order and the first match wins, which gives explicit
precedence (CSI secret mounts before generic FailedMount, specific reasons
before message-only catch-alls). Unmapped events are dropped silently; a
classification miss is not an error.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from kubetriage.models.findings import FailureCode, Owner, Severity
from kubetriage.models.snapshot import EventView


@dataclass(frozen=True)
class MappedFailure:
    """Classification result; severity and owner may override the code defaults."""

    code: FailureCode
    severity: Severity
    owner: Owner
    title: str

    @classmethod
    def of(cls, code: FailureCode, title: str) -> MappedFailure:
        return cls(code=code, severity=code.default_severity, owner=code.default_owner, title=title)


@dataclass(frozen=True)
class MappingRule:
    """One row of the classification table."""

    name: str
    predicate: Callable[[EventView], bool]
    failure: MappedFailure

    def matches(self, event: EventView) -> bool:
        return self.predicate(event)


def _contains_any(*needles: str) -> Callable[[str], bool]:
    return lambda msg: any(n in msg for n in needles)


def _when(
    reason: str | None = None,
    message: Callable[[str], bool] | None = None,
    kind: str | None = None,
) -> Callable[[EventView], bool]:
    """Build an event predicate.

    reason is compared case-insensitively (None matches any reason); message
    receives the lower-cased event message; kind, when given, must equal the
    involved object's kind.
    """

    def predicate(event: EventView) -> bool:
        if reason is not None and reason.lower() != (event.reason or "").lower():
            return False
        if kind is not None and (event.involved_object is None or event.involved_object.kind != kind):
            return False
        if message is None:
            return True
        return message((event.message or "").lower())

    return predicate


_EXTERNAL_SECRET = MappedFailure.of(
    FailureCode.EXTERNAL_SECRET_RESOLUTION_FAILED, "External secret mount failed (CSI / Key Vault)"
)
_BAD_CONFIG = MappedFailure.of(FailureCode.BAD_CONFIG, "Bad configuration")
_IMAGE_PULL = MappedFailure.of(FailureCode.IMAGE_PULL_FAILED, "Image pull failed")
_CRASH_LOOP = MappedFailure.of(FailureCode.CRASH_LOOP, "Crash loop detected")
_INSUFFICIENT = MappedFailure.of(FailureCode.INSUFFICIENT_RESOURCES, "Insufficient resources")
_RBAC = MappedFailure.of(FailureCode.RBAC_DENIED, "RBAC permission denied")
_SANDBOX = MappedFailure.of(FailureCode.POD_SANDBOX_RECYCLE, "Pod sandbox recycled")

DEFAULT_RULES: tuple[MappingRule, ...] = (
    MappingRule(
        "failedmount_csi_secret",
        _when("FailedMount", _contains_any("secrets-store.csi", "secretproviderclass", "keyvault", "key vault")),
        _EXTERNAL_SECRET,
    ),
    MappingRule(
        "failedattach_csi_secret",
        _when("FailedAttachVolume", _contains_any("secrets-store", "keyvault")),
        _EXTERNAL_SECRET,
    ),
    MappingRule(
        "failedmount_missing_ref",
        _when("FailedMount", lambda msg: ("secret" in msg or "configmap" in msg) and "not found" in msg),
        _BAD_CONFIG,
    ),
    MappingRule("failed_pull", _when("Failed", _contains_any("pull", "errimagepull")), _IMAGE_PULL),
    MappingRule("errimagepull", _when("ErrImagePull"), _IMAGE_PULL),
    MappingRule("imagepullbackoff", _when("ImagePullBackOff"), _IMAGE_PULL),
    # kubelet reports image pull back-off under the generic BackOff reason too.
    MappingRule("backoff_pulling_image", _when("BackOff", _contains_any("pulling image")), _IMAGE_PULL),
    MappingRule(
        "backoff_restarting",
        _when("BackOff", kind="Pod"),
        _CRASH_LOOP,
    ),
    MappingRule("failedscheduling", _when("FailedScheduling"), _INSUFFICIENT),
    MappingRule(
        "insufficient_capacity",
        _when(message=_contains_any("insufficient cpu", "insufficient memory", "unschedulable")),
        _INSUFFICIENT,
    ),
    MappingRule(
        "rbac_denied",
        _when(message=_contains_any("forbidden", "rbac", "unauthorized", "access denied", "permission denied")),
        _RBAC,
    ),
    MappingRule("sandbox_changed", _when("SandboxChanged"), _SANDBOX),
)


class EventFindingMapper:
    """First-match-wins classifier over an immutable rule table."""

    def __init__(self, rules: tuple[MappingRule, ...] = DEFAULT_RULES) -> None:
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[MappingRule, ...]:
        return self._rules

    def map(self, event: EventView) -> MappedFailure | None:
        """Classify a warning event; Normal events and misses return None."""
        if not event.is_warning:
            return None
        for rule in self._rules:
            if rule.matches(event):
                return rule.failure
        return None
