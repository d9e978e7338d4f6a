"""Raw Kubernetes JSON -> ClusterSnapshot.

Accepts the plain dict shape produced by ``kubectl get -o json`` (or the
Kubernetes REST API) and normalises it into the immutable view types that
detectors consume. Nothing here talks to a cluster.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from kubetriage.models.snapshot import (
    ClusterSnapshot,
    DeploymentCondition,
    EndpointsView,
    EventView,
    InvolvedObject,
    PodPhase,
    PodView,
    ServiceView,
    WorkloadView,
)
from kubetriage.observability.logging import get_logger

_logger = get_logger("snapshot_builder")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Involved-object kinds an event may reference and still be kept.
_RELATED_KINDS: frozenset[str] = frozenset({"Pod", "Deployment", "ReplicaSet"})

# Sort key for events without any timestamp: oldest possible.
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class SnapshotError(ValueError):
    """Raised when a snapshot document is structurally malformed."""


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _as_dict(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SnapshotError(f"Expected an object for {where}, got {type(value).__name__}")
    return value


def _as_list(value: Any, where: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SnapshotError(f"Expected a list for {where}, got {type(value).__name__}")
    return value


def _as_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _name_of(obj: Mapping[str, Any], kind: str) -> str:
    metadata = _as_dict(obj.get("metadata"), f"{kind}.metadata")
    name = metadata.get("name")
    if not isinstance(name, str) or not name:
        raise SnapshotError(f"{kind} is missing metadata.name")
    return name


def _parse_dt(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp; unparseable values become None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)
    return None


# ---------------------------------------------------------------------------
# Per-kind converters
# ---------------------------------------------------------------------------


def _pod_reason(status: Mapping[str, Any]) -> str | None:
    """First waiting reason, else first terminated reason, else the pod status reason."""
    container_statuses = _as_list(status.get("containerStatuses"), "pod.status.containerStatuses")
    for cs in container_statuses:
        state = _as_dict(cs, "containerStatus").get("state") or {}
        waiting = state.get("waiting") if isinstance(state, dict) else None
        if isinstance(waiting, dict) and waiting.get("reason"):
            return str(waiting["reason"])
    for cs in container_statuses:
        state = _as_dict(cs, "containerStatus").get("state") or {}
        terminated = state.get("terminated") if isinstance(state, dict) else None
        if isinstance(terminated, dict) and terminated.get("reason"):
            return str(terminated["reason"])
    reason = status.get("reason")
    return str(reason) if reason else None


def pod_view(raw: Mapping[str, Any]) -> PodView:
    name = _name_of(raw, "Pod")
    status = _as_dict(raw.get("status"), "pod.status")

    ready = False
    for cond in _as_list(status.get("conditions"), "pod.status.conditions"):
        cond = _as_dict(cond, "pod condition")
        if cond.get("type") == "Ready":
            ready = str(cond.get("status", "")).lower() == "true"
            break

    restarts = sum(
        _as_int(_as_dict(cs, "containerStatus").get("restartCount"))
        for cs in _as_list(status.get("containerStatuses"), "pod.status.containerStatuses")
    )

    return PodView(
        name=name,
        phase=PodPhase.parse(status.get("phase")),
        ready=ready,
        restart_count=restarts,
        reason=_pod_reason(status),
    )


def workload_view(raw: Mapping[str, Any]) -> WorkloadView:
    name = _name_of(raw, "Deployment")
    spec = _as_dict(raw.get("spec"), "deployment.spec")
    status = _as_dict(raw.get("status"), "deployment.status")
    conditions: list[DeploymentCondition] = []
    for raw_cond in _as_list(status.get("conditions"), "deployment.status.conditions"):
        cond = _as_dict(raw_cond, "deployment condition")
        conditions.append(
            DeploymentCondition(
                type=str(cond.get("type", "")),
                status=str(cond.get("status", "")),
                reason=str(cond["reason"]) if cond.get("reason") else None,
            )
        )
    return WorkloadView(
        name=name,
        desired_replicas=_as_int(spec.get("replicas"), default=1),
        ready_replicas=_as_int(status.get("readyReplicas")),
        conditions=tuple(conditions),
    )


def event_view(raw: Mapping[str, Any]) -> EventView:
    involved_raw = raw.get("involvedObject")
    involved: InvolvedObject | None = None
    if isinstance(involved_raw, dict) and involved_raw.get("kind") and involved_raw.get("name"):
        involved = InvolvedObject(
            kind=str(involved_raw["kind"]),
            name=str(involved_raw["name"]),
            namespace=str(involved_raw.get("namespace", "")),
        )
    timestamp = (
        _parse_dt(raw.get("eventTime"))
        or _parse_dt(raw.get("lastTimestamp"))
        or _parse_dt(raw.get("firstTimestamp"))
    )
    return EventView(
        type=str(raw.get("type") or "Normal"),
        reason=str(raw.get("reason") or ""),
        message=str(raw.get("message") or ""),
        involved_object=involved,
        timestamp=timestamp,
    )


def service_view(raw: Mapping[str, Any]) -> ServiceView:
    name = _name_of(raw, "Service")
    spec = _as_dict(raw.get("spec"), "service.spec")
    selector = _as_dict(spec.get("selector"), "service.spec.selector")
    return ServiceView(
        name=name,
        type=str(spec["type"]) if spec.get("type") else None,
        selector={str(k): str(v) for k, v in selector.items()},
    )


def endpoints_view(raw: Mapping[str, Any]) -> EndpointsView:
    name = _name_of(raw, "Endpoints")
    ready = 0
    not_ready = 0
    for subset in _as_list(raw.get("subsets"), "endpoints.subsets"):
        subset = _as_dict(subset, "endpoints subset")
        ready += len(_as_list(subset.get("addresses"), "subset.addresses"))
        not_ready += len(_as_list(subset.get("notReadyAddresses"), "subset.notReadyAddresses"))
    return EndpointsView(service_name=name, ready_addresses=ready, not_ready_addresses=not_ready)


# ---------------------------------------------------------------------------
# Event selection
# ---------------------------------------------------------------------------


def _replica_set_names(pods: Iterable[Mapping[str, Any]]) -> set[str]:
    names: set[str] = set()
    for pod in pods:
        metadata = _as_dict(pod.get("metadata"), "pod.metadata")
        for ref in _as_list(metadata.get("ownerReferences"), "ownerReferences"):
            if isinstance(ref, dict) and ref.get("kind") == "ReplicaSet" and ref.get("name"):
                names.add(str(ref["name"]))
    return names


def select_events(
    events: Iterable[EventView],
    *,
    pod_names: set[str],
    deployment_names: set[str],
    replica_set_names: set[str],
    limit: int,
) -> list[EventView]:
    """Keep related events, newest first, de-duplicated, warnings first.

    Up to ``min(limit, max(3, limit // 2))`` warning events are taken first,
    then the remaining slots are filled with non-warning events.
    """
    known = {"Pod": pod_names, "Deployment": deployment_names, "ReplicaSet": replica_set_names}
    related = [
        e
        for e in events
        if e.involved_object is not None
        and e.involved_object.kind in _RELATED_KINDS
        and e.involved_object.name in known[e.involved_object.kind]
    ]
    related.sort(key=lambda e: e.timestamp or _EPOCH, reverse=True)

    deduped: dict[str, EventView] = {}
    for e in related:
        deduped.setdefault(f"{e.type}|{e.reason}|{e.involved_object_key}", e)

    limit = max(0, limit)
    warning_budget = min(limit, max(3, limit // 2))
    warnings = [e for e in deduped.values() if e.is_warning]
    normals = [e for e in deduped.values() if not e.is_warning]

    selected = warnings[:warning_budget]
    remaining = limit - len(selected)
    if remaining > 0:
        selected.extend(normals[:remaining])
    return selected


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_snapshot(
    pods: Iterable[Mapping[str, Any]],
    deployments: Iterable[Mapping[str, Any]],
    events: Iterable[Mapping[str, Any]],
    services: Iterable[Mapping[str, Any]] = (),
    endpoints: Iterable[Mapping[str, Any]] = (),
    limit_events: int = 50,
) -> ClusterSnapshot:
    """Build a ClusterSnapshot from raw Kubernetes object dicts.

    Raises:
        SnapshotError: If any object is structurally malformed.
    """
    raw_pods = [_as_dict(p, "pod") for p in pods]
    raw_deployments = [_as_dict(d, "deployment") for d in deployments]

    pod_views = tuple(pod_view(p) for p in raw_pods)
    workload_views = tuple(workload_view(d) for d in raw_deployments)
    event_views = [event_view(_as_dict(e, "event")) for e in events]

    selected = select_events(
        event_views,
        pod_names={p.name for p in pod_views},
        deployment_names={d.name for d in workload_views},
        replica_set_names=_replica_set_names(raw_pods),
        limit=limit_events,
    )

    snapshot = ClusterSnapshot(
        pods=pod_views,
        deployments=workload_views,
        events=tuple(selected),
        services=tuple(service_view(_as_dict(s, "service")) for s in services),
        endpoints=tuple(endpoints_view(_as_dict(e, "endpoints")) for e in endpoints),
    )
    _logger.debug(
        "snapshot_built",
        pods=len(snapshot.pods),
        deployments=len(snapshot.deployments),
        events_in=len(event_views),
        events_kept=len(snapshot.events),
        services=len(snapshot.services),
    )
    return snapshot


def snapshot_from_list(doc: Mapping[str, Any], limit_events: int = 50) -> ClusterSnapshot:
    """Split a ``kind: List`` document by item kind and build a snapshot.

    Items of kinds other than Pod, Deployment, Event, Service and Endpoints
    are ignored.
    """
    if not isinstance(doc, dict):
        raise SnapshotError("Snapshot document must be a JSON object")
    items = _as_list(doc.get("items"), "items")

    buckets: dict[str, list[dict[str, Any]]] = {
        "Pod": [],
        "Deployment": [],
        "Event": [],
        "Service": [],
        "Endpoints": [],
    }
    ignored = 0
    for item in items:
        item = _as_dict(item, "item")
        kind = item.get("kind")
        if kind in buckets:
            buckets[str(kind)].append(item)
        else:
            ignored += 1
    if ignored:
        _logger.debug("snapshot_items_ignored", count=ignored)

    return build_snapshot(
        buckets["Pod"],
        buckets["Deployment"],
        buckets["Event"],
        services=buckets["Service"],
        endpoints=buckets["Endpoints"],
        limit_events=limit_events,
    )
