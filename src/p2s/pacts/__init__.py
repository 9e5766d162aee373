"""Public contracts — input types, build configuration and errors."""

from p2s.pacts.types import (
    BuildConfig, CompileError, ConfigurationError, InvalidSpecError,
    Prometheus, PrometheusSpec, SecretKeySelector, StorageSpec, ThanosSpec,
)

__all__ = [
    "BuildConfig",
    "CompileError",
    "ConfigurationError",
    "InvalidSpecError",
    "Prometheus",
    "PrometheusSpec",
    "SecretKeySelector",
    "StorageSpec",
    "ThanosSpec",
]
