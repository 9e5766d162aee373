"""Prometheus custom resource decoding — YAML loading, camelCase → dataclasses."""

import sys

import yaml

from p2s.pacts.types import (
    InvalidSpecError, Prometheus, PrometheusSpec, SecretKeySelector,
    StorageSpec, ThanosSpec,
)


def _expect(value, kind, where: str):
    """Return *value* if it has the expected type (None passes through)."""
    if value is not None and not isinstance(value, kind):
        raise InvalidSpecError(f"{where}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _str(doc: dict, key: str, where: str, default=""):
    value = _expect(doc.get(key), str, f"{where}.{key}")
    return default if value is None else value


def _bool(doc: dict, key: str, where: str, default=None):
    value = _expect(doc.get(key), bool, f"{where}.{key}")
    return default if value is None else value


def _dict(doc: dict, key: str, where: str) -> dict:
    return _expect(doc.get(key), dict, f"{where}.{key}") or {}


def _list(doc: dict, key: str, where: str) -> list:
    return _expect(doc.get(key), list, f"{where}.{key}") or []


def _names(doc: dict, key: str, where: str) -> list[str]:
    items = _list(doc, key, where)
    for i, item in enumerate(items):
        _expect(item, str, f"{where}.{key}[{i}]")
    return items


def _secret_key_selector(doc: dict, key: str, where: str) -> SecretKeySelector | None:
    ref = _expect(doc.get(key), dict, f"{where}.{key}")
    if ref is None:
        return None
    return SecretKeySelector(
        name=_str(ref, "name", f"{where}.{key}"),
        key=_str(ref, "key", f"{where}.{key}"),
        optional=_bool(ref, "optional", f"{where}.{key}"),
    )


def _parse_storage(doc: dict | None) -> StorageSpec | None:
    if doc is None:
        return None
    where = "spec.storage"
    return StorageSpec(
        volume_claim_template=_expect(doc.get("volumeClaimTemplate"), dict,
                                      f"{where}.volumeClaimTemplate"),
        empty_dir=_expect(doc.get("emptyDir"), dict, f"{where}.emptyDir"),
        disable_mount_sub_path=_bool(doc, "disableMountSubPath", where, False),
    )


def _parse_thanos(doc: dict | None) -> ThanosSpec | None:
    if doc is None:
        return None
    where = "spec.thanos"
    return ThanosSpec(
        version=_str(doc, "version", where, None),
        image=_str(doc, "image", where, None),
        sha=_str(doc, "sha", where, None),
        tag=_str(doc, "tag", where, None),
        base_image=_str(doc, "baseImage", where, None),
        resources=_dict(doc, "resources", where),
        listen_local=_bool(doc, "listenLocal", where, False),
        object_storage_config=_secret_key_selector(doc, "objectStorageConfig", where),
        tracing_config=_secret_key_selector(doc, "tracingConfig", where),
        log_level=_str(doc, "logLevel", where),
        log_format=_str(doc, "logFormat", where),
    )


def _parse_spec(doc: dict) -> PrometheusSpec:
    where = "spec"
    replicas = _expect(doc.get("replicas"), int, f"{where}.replicas")
    if isinstance(replicas, bool):
        raise InvalidSpecError(f"{where}.replicas: expected int, got bool")
    return PrometheusSpec(
        version=_str(doc, "version", where),
        image=_str(doc, "image", where, None),
        sha=_str(doc, "sha", where),
        tag=_str(doc, "tag", where),
        base_image=_str(doc, "baseImage", where),
        retention=_str(doc, "retention", where),
        retention_size=_str(doc, "retentionSize", where),
        wal_compression=_bool(doc, "walCompression", where),
        listen_local=_bool(doc, "listenLocal", where, False),
        storage=_parse_storage(_expect(doc.get("storage"), dict, f"{where}.storage")),
        config_maps=_names(doc, "configMaps", where),
        secrets=_names(doc, "secrets", where),
        containers=_list(doc, "containers", where),
        init_containers=_list(doc, "initContainers", where),
        volumes=_list(doc, "volumes", where),
        volume_mounts=_list(doc, "volumeMounts", where),
        pod_metadata=_dict(doc, "podMetadata", where),
        resources=_dict(doc, "resources", where),
        thanos=_parse_thanos(_expect(doc.get("thanos"), dict, f"{where}.thanos")),
        replicas=replicas,
        route_prefix=_str(doc, "routePrefix", where),
        external_url=_str(doc, "externalUrl", where),
        log_level=_str(doc, "logLevel", where),
        log_format=_str(doc, "logFormat", where),
        enable_admin_api=_bool(doc, "enableAdminAPI", where, False),
        service_account_name=_str(doc, "serviceAccountName", where),
        node_selector=_dict(doc, "nodeSelector", where),
        tolerations=_list(doc, "tolerations", where),
        affinity=_dict(doc, "affinity", where),
        security_context=_dict(doc, "securityContext", where),
        priority_class_name=_str(doc, "priorityClassName", where),
    )


def parse_prometheus(doc: dict) -> Prometheus:
    """Decode a Prometheus custom resource (as loaded from YAML/JSON)."""
    _expect(doc, dict, "Prometheus")
    meta = _dict(doc, "metadata", "Prometheus")
    return Prometheus(
        name=_str(meta, "name", "metadata"),
        namespace=_str(meta, "namespace", "metadata"),
        labels=_dict(meta, "labels", "metadata"),
        annotations=_dict(meta, "annotations", "metadata"),
        spec=_parse_spec(_dict(doc, "spec", "Prometheus")),
    )


def load_prometheuses(path: str) -> list[Prometheus]:
    """Load every ``kind: Prometheus`` document from a YAML file."""
    result = []
    try:
        with open(path, encoding="utf-8") as f:
            docs = list(yaml.safe_load_all(f))
    except yaml.YAMLError as exc:
        raise InvalidSpecError(f"{path}: invalid YAML ({exc.__class__.__name__})") from exc
    for doc in docs:
        if not doc or not isinstance(doc, dict):
            continue
        kind = doc.get("kind", "Prometheus")
        if kind != "Prometheus":
            name = (doc.get("metadata") or {}).get("name", "?")
            print(f"⚠ Skipping {kind} '{name}'", file=sys.stderr)
            continue
        result.append(parse_prometheus(doc))
    return result
