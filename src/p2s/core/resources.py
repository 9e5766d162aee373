"""Resource requests and limits for the Prometheus container and its sidecars."""

import copy

from kubernetes.utils import parse_quantity

from p2s.pacts.types import ConfigurationError, InvalidSpecError

# Upper bound for the memory request derived from a memory limit
DEFAULT_MEMORY_REQUEST = "2Gi"

# Configured reloader size that means "no request/limit for this resource"
UNLIMITED = "0"


def _quantity(value, what: str, error=InvalidSpecError):
    try:
        return parse_quantity(value)
    except ValueError as exc:
        raise error(f"invalid {what} quantity '{value}'") from exc


def prometheus_resources(resources: dict | None) -> dict:
    """Return the Prometheus container resources with the memory request defaulted.

    When only a memory limit is given the request becomes min(limit, 2Gi).
    CPU is left as the user wrote it.
    """
    result = copy.deepcopy(resources or {})
    limits = result.get("limits") or {}
    requests = result.get("requests") or {}
    if "memory" in limits and "memory" not in requests:
        limit = limits["memory"]
        if _quantity(limit, "memory limit") < _quantity(DEFAULT_MEMORY_REQUEST, "memory request"):
            request = limit
        else:
            request = DEFAULT_MEMORY_REQUEST
        if not result.get("requests"):
            result["requests"] = {}
        result["requests"]["memory"] = request
    return result


def reloader_resources(cpu: str, memory: str) -> dict:
    """Identical requests and limits for a reloader; "0" omits that resource."""
    sizes = {}
    if cpu and cpu != UNLIMITED:
        _quantity(cpu, "reloader cpu", ConfigurationError)
        sizes["cpu"] = cpu
    if memory and memory != UNLIMITED:
        _quantity(memory, "reloader memory", ConfigurationError)
        sizes["memory"] = memory
    if not sizes:
        return {}
    return {"limits": dict(sizes), "requests": dict(sizes)}


def thanos_resources(resources: dict | None) -> dict:
    """Sidecar resources are copied verbatim, no implicit defaults."""
    return copy.deepcopy(resources or {})
