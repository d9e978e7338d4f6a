"""Immutable cluster snapshot consumed by every detector.

The view types carry only the fields detectors need. They are built once per
triage request (see ``kubetriage.collector.snapshot_builder``) or by hand in
tests, and are never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class PodPhase(StrEnum):
    """Kubernetes pod lifecycle phase."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str | None) -> PodPhase:
        """Map a raw phase string to a PodPhase; unrecognised values become UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        for phase in cls:
            if phase.value.lower() == value.lower():
                return phase
        return cls.UNKNOWN


_CRASH_LOOP_REASONS = frozenset({"crashloopbackoff"})
_IMAGE_PULL_REASONS = frozenset({"imagepullbackoff", "errimagepull"})


@dataclass(frozen=True)
class PodView:
    """Normalised view of a pod."""

    name: str
    phase: PodPhase
    ready: bool
    restart_count: int = 0
    reason: str | None = None

    @property
    def is_running(self) -> bool:
        return self.phase == PodPhase.RUNNING

    @property
    def is_pending(self) -> bool:
        return self.phase == PodPhase.PENDING

    @property
    def has_crash_loop_backoff(self) -> bool:
        return self.reason is not None and self.reason.lower() in _CRASH_LOOP_REASONS

    @property
    def has_image_pull_backoff(self) -> bool:
        return self.reason is not None and self.reason.lower() in _IMAGE_PULL_REASONS


@dataclass(frozen=True)
class InvolvedObject:
    """Object reference carried by an event."""

    kind: str
    name: str
    namespace: str = ""


@dataclass(frozen=True)
class EventView:
    """Normalised view of a Kubernetes event."""

    type: str  # Warning | Normal
    reason: str
    message: str
    involved_object: InvolvedObject | None = None
    timestamp: datetime | None = None

    @property
    def is_warning(self) -> bool:
        return self.type.lower() == "warning"

    @property
    def involved_object_key(self) -> str | None:
        if self.involved_object is None:
            return None
        return f"{self.involved_object.kind}/{self.involved_object.name}"


@dataclass(frozen=True)
class DeploymentCondition:
    """A single deployment status condition."""

    type: str  # Available | Progressing | ReplicaFailure
    status: str  # True | False | Unknown
    reason: str | None = None


@dataclass(frozen=True)
class WorkloadView:
    """Normalised view of a deployment."""

    name: str
    desired_replicas: int
    ready_replicas: int
    conditions: tuple[DeploymentCondition, ...] = ()

    @property
    def is_rollout_stuck(self) -> bool:
        return any(
            c.type == "Progressing"
            and c.status.lower() == "false"
            and (c.reason or "").lower() == "progressdeadlineexceeded"
            for c in self.conditions
        )

    @property
    def is_fully_ready(self) -> bool:
        return self.ready_replicas >= self.desired_replicas


@dataclass(frozen=True)
class ServiceView:
    """Normalised view of a service."""

    name: str
    type: str | None = None
    selector: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EndpointsView:
    """Address counts of the Endpoints object backing a service."""

    service_name: str
    ready_addresses: int
    not_ready_addresses: int = 0


@dataclass(frozen=True)
class ClusterSnapshot:
    """Point-in-time, read-only snapshot of a workload's runtime state.

    Shared by reference across all detectors. Helper methods derive views on
    the fly and never cache into the instance.
    """

    pods: tuple[PodView, ...] = ()
    deployments: tuple[WorkloadView, ...] = ()
    events: tuple[EventView, ...] = ()
    services: tuple[ServiceView, ...] = ()
    endpoints: tuple[EndpointsView, ...] = ()

    def is_empty(self) -> bool:
        """True when there is nothing to assess: no pods and no deployments."""
        return not self.pods and not self.deployments

    def warning_events(self) -> list[EventView]:
        return [e for e in self.events if e.is_warning]

    def pod_names(self) -> set[str]:
        return {p.name for p in self.pods}

    def events_for_pod(self, pod_name: str) -> list[EventView]:
        return [
            e
            for e in self.events
            if e.involved_object is not None
            and e.involved_object.kind == "Pod"
            and e.involved_object.name == pod_name
        ]

    def endpoints_for(self, service_name: str) -> EndpointsView | None:
        for eps in self.endpoints:
            if eps.service_name == service_name:
                return eps
        return None


@dataclass(frozen=True)
class DetectionContext:
    """Request parameters threaded unchanged through every detector call."""

    namespace: str
    selector: str | None = None
    release: str | None = None
    limit_events: int = 50
