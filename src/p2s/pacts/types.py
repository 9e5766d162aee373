"""Public data types — the desired Prometheus object, build config, errors."""

from dataclasses import dataclass, field

# Operator-wide defaults (overridable in the operator config file)
DEFAULT_PROMETHEUS_VERSION = "v2.15.2"
DEFAULT_THANOS_VERSION = "v0.10.1"


class CompileError(ValueError):
    """Base class for everything make_statefulset refuses to compile."""


class ConfigurationError(CompileError):
    """Operator configuration or mutually exclusive options are invalid."""


class InvalidSpecError(CompileError):
    """User input that cannot be defaulted (bad version, bad quantity...)."""


@dataclass
class SecretKeySelector:
    """Reference to one key of a Secret (``secretKeyRef``)."""
    name: str = ""
    key: str = ""
    optional: bool | None = None

    def to_dict(self) -> dict:
        ref = {"name": self.name, "key": self.key}
        if self.optional is not None:
            ref["optional"] = self.optional
        return ref


@dataclass
class StorageSpec:
    """Storage policy: a claim template XOR an emptyDir descriptor (or neither)."""
    volume_claim_template: dict | None = None
    empty_dir: dict | None = None
    disable_mount_sub_path: bool = False


@dataclass
class ThanosSpec:
    """Thanos sidecar settings."""
    version: str | None = None
    image: str | None = None
    sha: str | None = None
    tag: str | None = None
    base_image: str | None = None
    resources: dict = field(default_factory=dict)
    listen_local: bool = False
    object_storage_config: SecretKeySelector | None = None
    tracing_config: SecretKeySelector | None = None
    log_level: str = ""
    log_format: str = ""


@dataclass
class PrometheusSpec:
    """Desired state of a Prometheus deployment."""
    version: str = ""
    image: str | None = None
    sha: str = ""
    tag: str = ""
    base_image: str = ""
    retention: str = ""
    retention_size: str = ""
    wal_compression: bool | None = None
    listen_local: bool = False
    storage: StorageSpec | None = None
    config_maps: list = field(default_factory=list)
    secrets: list = field(default_factory=list)
    containers: list = field(default_factory=list)
    init_containers: list = field(default_factory=list)
    volumes: list = field(default_factory=list)
    volume_mounts: list = field(default_factory=list)
    pod_metadata: dict = field(default_factory=dict)
    resources: dict = field(default_factory=dict)
    thanos: ThanosSpec | None = None
    replicas: int | None = None
    route_prefix: str = ""
    external_url: str = ""
    log_level: str = ""
    log_format: str = ""
    enable_admin_api: bool = False
    service_account_name: str = ""
    node_selector: dict = field(default_factory=dict)
    tolerations: list = field(default_factory=list)
    affinity: dict = field(default_factory=dict)
    security_context: dict = field(default_factory=dict)
    priority_class_name: str = ""


@dataclass
class Prometheus:
    """A Prometheus custom resource: object metadata plus its spec."""
    name: str = ""
    namespace: str = ""
    labels: dict = field(default_factory=dict)
    annotations: dict = field(default_factory=dict)
    spec: PrometheusSpec = field(default_factory=PrometheusSpec)


@dataclass(frozen=True)
class BuildConfig:
    """Operator-wide configuration, loaded once and passed to every compile call."""
    config_reloader_image: str = "jimmidyson/configmap-reload:v0.3.0"
    config_reloader_cpu: str = "100m"
    config_reloader_memory: str = "25Mi"
    prometheus_config_reloader_image: str = "quay.io/coreos/prometheus-config-reloader:v0.34.0"
    prometheus_default_base_image: str = "quay.io/prometheus/prometheus"
    thanos_default_base_image: str = "quay.io/thanos/thanos"
    prometheus_default_version: str = DEFAULT_PROMETHEUS_VERSION
    thanos_default_version: str = DEFAULT_THANOS_VERSION
    labels: dict = field(default_factory=dict)
    log_format: str = "logfmt"
    local_host: str = "localhost"
