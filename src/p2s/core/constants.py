"""Names, paths and ports shared by the compiler modules."""

# Container names (order of the operator-built container list)
PROMETHEUS_CONTAINER = "prometheus"
CONFIG_RELOADER_CONTAINER = "prometheus-config-reloader"
RULES_RELOADER_CONTAINER = "rules-configmap-reloader"
THANOS_CONTAINER = "thanos-sidecar"

# Filesystem layout inside the pod
CONF_DIR = "/etc/prometheus/config"
CONF_OUT_DIR = "/etc/prometheus/config_out"
TLS_ASSETS_DIR = "/etc/prometheus/certs"
RULES_DIR = "/etc/prometheus/rules"
SECRETS_DIR = "/etc/prometheus/secrets"
CONFIGMAPS_DIR = "/etc/prometheus/configmaps"
STORAGE_DIR = "/prometheus"
CONFIG_FILENAME = "prometheus.yaml.gz"
CONFIG_ENVSUBST_FILENAME = "prometheus.env.yaml"
STORAGE_SUB_PATH = "prometheus-db"

# Fixed volume names
CONFIG_VOLUME = "config"
CONFIG_OUT_VOLUME = "config-out"
TLS_ASSETS_VOLUME = "tls-assets"

# Ports
PROMETHEUS_PORT = 9090
THANOS_GRPC_PORT = 10901
THANOS_HTTP_PORT = 10902
LOOPBACK = "127.0.0.1"

# Metadata
GOVERNING_SERVICE = "prometheus-operated"
INPUT_HASH_ANNOTATION = "prometheus-operator-input-hash"
KUBECTL_ANNOTATION_PREFIX = "kubectl.kubernetes.io/"
TERMINATION_MESSAGE_POLICY = "FallbackToLogsOnError"
TERMINATION_GRACE_PERIOD_SECONDS = 600

DEFAULT_RETENTION = "24h"
DEFAULT_ROUTE_PREFIX = "/"
DEFAULT_REGISTRY = "docker.io"
MAX_BLOCK_DURATION = "2h"

# Environment variables injected into the Thanos sidecar
OBJSTORE_ENV = "OBJSTORE_CONFIG"
TRACING_ENV = "TRACING_CONFIG"

# Probe timings: readiness tolerates a long WAL replay, liveness does not
PROBE_TIMEOUT_SECONDS = 3
PROBE_PERIOD_SECONDS = 5
READINESS_FAILURE_THRESHOLD = 120
LIVENESS_FAILURE_THRESHOLD = 6


def prefixed_name(name: str) -> str:
    """StatefulSet name for a Prometheus resource."""
    return f"prometheus-{name}"


def config_secret_name(name: str) -> str:
    return f"prometheus-{name}"


def tls_assets_secret_name(name: str) -> str:
    return f"prometheus-{name}-tls-assets"


def storage_volume_name(name: str) -> str:
    return f"prometheus-{name}-db"
