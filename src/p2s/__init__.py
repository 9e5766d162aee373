"""p2s — compile Prometheus custom resources into StatefulSet manifests.

Re-exports the public API.
"""

from p2s.pacts.types import (
    BuildConfig, CompileError, ConfigurationError, InvalidSpecError,
    Prometheus, PrometheusSpec, SecretKeySelector, StorageSpec, ThanosSpec,
)
from p2s.core.convert import make_statefulset, compute_fingerprint
from p2s.core.images import build_image_path
from p2s.core.merge import merge_containers
from p2s.core.version import resolve_version
from p2s.io.config import load_config
from p2s.io.parsing import parse_prometheus

__all__ = [
    # Types
    "BuildConfig",
    "Prometheus",
    "PrometheusSpec",
    "SecretKeySelector",
    "StorageSpec",
    "ThanosSpec",
    # Errors
    "CompileError",
    "ConfigurationError",
    "InvalidSpecError",
    # Compiler
    "make_statefulset",
    "compute_fingerprint",
    "build_image_path",
    "merge_containers",
    "resolve_version",
    # I/O
    "load_config",
    "parse_prometheus",
]
