"""kubetriage - deterministic Kubernetes workload triage."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("kubetriage")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
