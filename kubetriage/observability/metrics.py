"""Prometheus metrics for kubetriage."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# Detection metrics
findings_total = Counter(
    "kubetriage_findings_total",
    "Total findings emitted by detectors",
    ["detector_id", "code"],
)

detector_failures_total = Counter(
    "kubetriage_detector_failures_total",
    "Total detector runs that raised and were isolated by the pipeline",
    ["detector_id"],
)

# Triage metrics
triage_total = Counter(
    "kubetriage_triage_total",
    "Total triage requests by resulting health status",
    ["health"],
)

triage_duration_seconds = Histogram(
    "kubetriage_triage_duration_seconds",
    "Triage duration in seconds (detection plus ranking)",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)
