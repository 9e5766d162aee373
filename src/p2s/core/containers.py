"""Container assembly — Prometheus arguments, probes, reloaders, Thanos sidecar."""

import posixpath

from p2s.core.constants import (
    CONF_DIR, CONF_OUT_DIR, CONFIG_ENVSUBST_FILENAME, CONFIG_FILENAME,
    CONFIG_RELOADER_CONTAINER, DEFAULT_RETENTION, DEFAULT_ROUTE_PREFIX,
    LIVENESS_FAILURE_THRESHOLD, LOOPBACK, MAX_BLOCK_DURATION, OBJSTORE_ENV,
    PROBE_PERIOD_SECONDS, PROBE_TIMEOUT_SECONDS, PROMETHEUS_CONTAINER,
    PROMETHEUS_PORT, READINESS_FAILURE_THRESHOLD, RULES_DIR,
    RULES_RELOADER_CONTAINER, STORAGE_DIR, THANOS_CONTAINER,
    THANOS_GRPC_PORT, THANOS_HTTP_PORT, TRACING_ENV,
)
from p2s.core.version import LEGACY, TSDB_V2, ResolvedVersion
from p2s.core.volumes import VolumePlan, config_reloader_mounts, rule_mounts, storage_mount
from p2s.pacts.types import BuildConfig, PrometheusSpec, ThanosSpec

# Retention flag spelling per dialect
_RETENTION_FLAGS = {
    LEGACY: "storage.local.retention",
    "tsdb-v1": "storage.tsdb.retention",
    TSDB_V2: "storage.tsdb.retention.time",
}

_PROBE_SHELL = (
    'if [ -x "$(command -v curl)" ]; then curl {url}; '
    'elif [ -x "$(command -v wget)" ]; then wget -q -O /dev/null {url}; '
    'else exit 1; fi'
)


def _flag_prefix(dialect: str) -> str:
    return "-" if dialect == LEGACY else "--"


def _render_flags(flags: list[tuple[str, str | None]], dialect: str) -> list[str]:
    """Render (name, value) pairs; a None value is a boolean switch."""
    prefix = _flag_prefix(dialect)
    return [f"{prefix}{name}" if value is None else f"{prefix}{name}={value}"
            for name, value in flags]


def route_prefix(spec: PrometheusSpec) -> str:
    return spec.route_prefix or DEFAULT_ROUTE_PREFIX


def _web_path(spec: PrometheusSpec, endpoint: str) -> str:
    return posixpath.normpath(posixpath.join(route_prefix(spec), endpoint.lstrip("/")))


def _has_object_storage(spec: PrometheusSpec) -> bool:
    return spec.thanos is not None and spec.thanos.object_storage_config is not None


def prometheus_args(spec: PrometheusSpec, version: ResolvedVersion,
                    warnings: list[str] | None = None) -> list[str]:
    """Build the Prometheus command line for the resolved flag dialect."""
    dialect = version.dialect
    retention = spec.retention or DEFAULT_RETENTION
    config_file = posixpath.join(CONF_OUT_DIR, CONFIG_ENVSUBST_FILENAME)
    flags: list[tuple[str, str | None]] = [
        ("web.console.templates", "/etc/prometheus/consoles"),
        ("web.console.libraries", "/etc/prometheus/console_libraries"),
    ]
    if dialect == LEGACY:
        flags += [
            (_RETENTION_FLAGS[dialect], retention),
            ("storage.local.num-fingerprint-mutexes", "4096"),
            ("storage.local.path", STORAGE_DIR),
            ("storage.local.chunk-encoding-version", "2"),
            ("config.file", config_file),
        ]
    else:
        flags += [
            ("config.file", config_file),
            ("storage.tsdb.path", STORAGE_DIR),
            (_RETENTION_FLAGS[dialect], retention),
            ("web.enable-lifecycle", None),
            ("storage.tsdb.no-lockfile", None),
        ]

    if spec.retention_size:
        if dialect == TSDB_V2:
            flags.append(("storage.tsdb.retention.size", spec.retention_size))
        elif warnings is not None:
            warnings.append(f"retentionSize ignored: Prometheus {version.raw} "
                            f"does not support storage.tsdb.retention.size")

    if version.wal_compression and spec.wal_compression is not None:
        if spec.wal_compression:
            flags.append(("storage.tsdb.wal-compression", None))
        else:
            flags.append(("no-storage.tsdb.wal-compression", None))

    if spec.external_url:
        flags.append(("web.external-url", spec.external_url))
    flags.append(("web.route-prefix", route_prefix(spec)))
    if spec.enable_admin_api and dialect != LEGACY:
        flags.append(("web.enable-admin-api", None))
    if spec.log_level:
        flags.append(("log.level", spec.log_level))
    if spec.log_format and dialect != LEGACY:
        flags.append(("log.format", spec.log_format))
    if spec.listen_local:
        flags.append(("web.listen-address", f"{LOOPBACK}:{PROMETHEUS_PORT}"))
    if _has_object_storage(spec):
        # Thanos uploads only completed blocks, keep them small
        flags.append(("storage.tsdb.max-block-duration", MAX_BLOCK_DURATION))
    return _render_flags(flags, dialect)


def _probe(handler: dict, failure_threshold: int) -> dict:
    probe = dict(handler)
    probe["timeoutSeconds"] = PROBE_TIMEOUT_SECONDS
    probe["periodSeconds"] = PROBE_PERIOD_SECONDS
    probe["failureThreshold"] = failure_threshold
    return probe


def _probe_handler(spec: PrometheusSpec, path: str) -> dict:
    if spec.listen_local:
        url = f"http://localhost:{PROMETHEUS_PORT}{path}"
        return {"exec": {"command": ["sh", "-c", _PROBE_SHELL.format(url=url)]}}
    return {"httpGet": {"path": path, "port": "web"}}


def prometheus_probes(spec: PrometheusSpec, version: ResolvedVersion) -> tuple[dict, dict]:
    """Return (readiness, liveness) probes for the Prometheus container."""
    if version.dialect == LEGACY:
        ready_path = healthy_path = _web_path(spec, "/status")
    else:
        ready_path = _web_path(spec, "/-/ready")
        healthy_path = _web_path(spec, "/-/healthy")
    readiness = _probe(_probe_handler(spec, ready_path), READINESS_FAILURE_THRESHOLD)
    liveness = _probe(_probe_handler(spec, healthy_path), LIVENESS_FAILURE_THRESHOLD)
    return readiness, liveness


def build_prometheus_container(spec: PrometheusSpec, version: ResolvedVersion,
                               image: str, plan: VolumePlan, resources: dict,
                               warnings: list[str] | None = None) -> dict:
    readiness, liveness = prometheus_probes(spec, version)
    container = {
        "name": PROMETHEUS_CONTAINER,
        "image": image,
        "args": prometheus_args(spec, version, warnings),
    }
    if not spec.listen_local:
        container["ports"] = [{"name": "web", "containerPort": PROMETHEUS_PORT,
                               "protocol": "TCP"}]
    container["volumeMounts"] = plan.mounts
    container["livenessProbe"] = liveness
    container["readinessProbe"] = readiness
    container["resources"] = resources
    return container


def _reload_url(spec: PrometheusSpec, config: BuildConfig) -> str:
    return f"http://{config.local_host}:{PROMETHEUS_PORT}{_web_path(spec, '/-/reload')}"


def build_config_reloader(spec: PrometheusSpec, config: BuildConfig, resources: dict) -> dict:
    """Container that renders the config secret into config-out and triggers a reload."""
    return {
        "name": CONFIG_RELOADER_CONTAINER,
        "image": config.prometheus_config_reloader_image,
        "command": ["/bin/prometheus-config-reloader"],
        "args": [
            f"--log-format={config.log_format}",
            f"--reload-url={_reload_url(spec, config)}",
            f"--config-file={posixpath.join(CONF_DIR, CONFIG_FILENAME)}",
            f"--config-envsubst-file={posixpath.join(CONF_OUT_DIR, CONFIG_ENVSUBST_FILENAME)}",
        ],
        "env": [{
            "name": "POD_NAME",
            "valueFrom": {"fieldRef": {"fieldPath": "metadata.name"}},
        }],
        "volumeMounts": config_reloader_mounts(),
        "resources": resources,
    }


def build_rules_reloader(spec: PrometheusSpec, config: BuildConfig,
                         rule_config_map_names: list[str], resources: dict) -> dict:
    """Container that triggers a reload whenever a rule ConfigMap changes."""
    args = [f"--webhook-url={_reload_url(spec, config)}"]
    args.extend(f"--volume-dir={RULES_DIR}/{cm}" for cm in rule_config_map_names)
    return {
        "name": RULES_RELOADER_CONTAINER,
        "image": config.config_reloader_image,
        "args": args,
        "volumeMounts": rule_mounts(rule_config_map_names),
        "resources": resources,
    }


def _secret_env(name: str, selector) -> dict:
    return {"name": name, "valueFrom": {"secretKeyRef": selector.to_dict()}}


def build_thanos_sidecar(spec: PrometheusSpec, thanos: ThanosSpec, config: BuildConfig,
                         image: str, plan: VolumePlan, resources: dict) -> dict:
    """Thanos sidecar; object storage and tracing each add env + args as a unit."""
    bind = LOOPBACK if thanos.listen_local else ""
    prom_url = f"http://{config.local_host}:{PROMETHEUS_PORT}{_web_path(spec, '/')}"
    args = [
        "sidecar",
        f"--prometheus.url={prom_url}",
        f"--grpc-address={bind}:{THANOS_GRPC_PORT}",
        f"--http-address={bind}:{THANOS_HTTP_PORT}",
    ]
    env = []
    mounts = []
    if thanos.object_storage_config is not None:
        env.append(_secret_env(OBJSTORE_ENV, thanos.object_storage_config))
        args.append(f"--objstore.config=$({OBJSTORE_ENV})")
        args.append(f"--tsdb.path={STORAGE_DIR}")
        mounts.append(storage_mount(plan))
    if thanos.tracing_config is not None:
        env.append(_secret_env(TRACING_ENV, thanos.tracing_config))
        args.append(f"--tracing.config=$({TRACING_ENV})")
    if thanos.log_level:
        args.append(f"--log.level={thanos.log_level}")
    if thanos.log_format:
        args.append(f"--log.format={thanos.log_format}")

    container = {
        "name": THANOS_CONTAINER,
        "image": image,
        "args": args,
        "ports": [
            {"name": "http", "containerPort": THANOS_HTTP_PORT},
            {"name": "grpc", "containerPort": THANOS_GRPC_PORT},
        ],
    }
    if env:
        container["env"] = env
    if mounts:
        container["volumeMounts"] = mounts
    container["resources"] = resources
    return container
