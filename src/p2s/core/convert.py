"""Main compilation — make_statefulset(), metadata and the input fingerprint."""

import copy
import dataclasses
import hashlib
import json

from p2s.core.constants import (
    GOVERNING_SERVICE, INPUT_HASH_ANNOTATION, KUBECTL_ANNOTATION_PREFIX,
    TERMINATION_GRACE_PERIOD_SECONDS, TERMINATION_MESSAGE_POLICY, prefixed_name,
)
from p2s.core.containers import (
    build_config_reloader, build_prometheus_container, build_rules_reloader,
    build_thanos_sidecar,
)
from p2s.core.images import build_image_path
from p2s.core.merge import merge_containers
from p2s.core.resources import prometheus_resources, reloader_resources, thanos_resources
from p2s.core.version import resolve_version
from p2s.core.volumes import build_volume_plan
from p2s.pacts.types import BuildConfig, InvalidSpecError, Prometheus


def _strip_kubectl_annotations(annotations: dict) -> dict:
    """Drop ``kubectl.kubernetes.io/*`` annotations."""
    return {k: v for k, v in (annotations or {}).items()
            if not k.startswith(KUBECTL_ANNOTATION_PREFIX)}


def _canonical_numbers(obj):
    """Rewrite integral floats as ints, recursively (1.0 and 1 encode alike)."""
    if isinstance(obj, dict):
        return {k: _canonical_numbers(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_canonical_numbers(v) for v in obj]
    if isinstance(obj, float) and obj.is_integer():
        return int(obj)
    return obj


def compute_fingerprint(prometheus: Prometheus, config: BuildConfig,
                        rule_config_map_names: list[str] | None = None) -> str:
    """Hash the compiler input over a canonical JSON encoding.

    Keys are sorted, separators fixed and integral floats written as ints,
    so equal inputs in a different key order or number spelling hash the
    same. kubectl annotations are not part of the input.
    """
    desired = dataclasses.asdict(prometheus)
    desired["annotations"] = _strip_kubectl_annotations(desired["annotations"])
    payload = {
        "prometheus": _canonical_numbers(desired),
        "config": dataclasses.asdict(config),
        "ruleConfigMaps": list(rule_config_map_names or []),
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"),
                         ensure_ascii=False, default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def selector_labels(name: str) -> dict:
    return {"app": "prometheus", "prometheus": name}


def _object_labels(prometheus: Prometheus, config: BuildConfig) -> dict:
    labels = dict(config.labels or {})
    labels.update(prometheus.labels or {})
    return labels


def _pod_metadata(prometheus: Prometheus) -> dict:
    """Pod template metadata; pod labels never reach the selector."""
    pod_meta = prometheus.spec.pod_metadata or {}
    labels = dict(pod_meta.get("labels") or {})
    labels.update(selector_labels(prometheus.name))
    meta = {"labels": labels}
    annotations = pod_meta.get("annotations")
    if annotations:
        meta["annotations"] = dict(annotations)
    return meta


def _build_containers(prometheus: Prometheus, config: BuildConfig,
                      rule_config_map_names: list[str], plan,
                      warnings: list[str] | None) -> list[dict]:
    """Operator-built containers: prometheus, config reloader, Thanos, rules reloader."""
    spec = prometheus.spec
    version = resolve_version(spec.version, config.prometheus_default_version, warnings)
    image = build_image_path(
        spec.image, spec.base_image or config.prometheus_default_base_image,
        spec.version, spec.tag, spec.sha,
        default_version=config.prometheus_default_version,
    )
    reloader = reloader_resources(config.config_reloader_cpu, config.config_reloader_memory)
    containers = [
        build_prometheus_container(spec, version, image, plan,
                                   prometheus_resources(spec.resources), warnings),
        build_config_reloader(spec, config, reloader),
    ]
    thanos = spec.thanos
    if thanos is not None:
        thanos_image = build_image_path(
            thanos.image, thanos.base_image or config.thanos_default_base_image,
            thanos.version, thanos.tag, thanos.sha,
            default_version=config.thanos_default_version,
        )
        containers.append(build_thanos_sidecar(spec, thanos, config, thanos_image, plan,
                                               thanos_resources(thanos.resources)))
    containers.append(build_rules_reloader(spec, config, rule_config_map_names, reloader))
    return containers


def _pod_spec(prometheus: Prometheus, containers: list[dict], volumes: list[dict]) -> dict:
    spec = prometheus.spec
    pod = {}
    if spec.init_containers:
        pod["initContainers"] = copy.deepcopy(spec.init_containers)
    pod["containers"] = containers
    if spec.service_account_name:
        pod["serviceAccountName"] = spec.service_account_name
    if spec.node_selector:
        pod["nodeSelector"] = copy.deepcopy(spec.node_selector)
    if spec.security_context:
        pod["securityContext"] = copy.deepcopy(spec.security_context)
    if spec.priority_class_name:
        pod["priorityClassName"] = spec.priority_class_name
    pod["terminationGracePeriodSeconds"] = TERMINATION_GRACE_PERIOD_SECONDS
    pod["volumes"] = volumes
    if spec.tolerations:
        pod["tolerations"] = copy.deepcopy(spec.tolerations)
    if spec.affinity:
        pod["affinity"] = copy.deepcopy(spec.affinity)
    return pod


def make_statefulset(prometheus: Prometheus, config: BuildConfig,
                     rule_config_map_names: list[str] | None = None,
                     input_hash: str | None = None,
                     warnings: list[str] | None = None) -> dict:
    """Compile a Prometheus resource into a StatefulSet manifest.

    *input_hash* is stored verbatim in the input-hash annotation; when it
    is None the fingerprint is computed from the inputs. Non-fatal issues
    are appended to *warnings*. Raises CompileError subclasses.
    """
    rule_config_map_names = list(rule_config_map_names or [])
    spec = prometheus.spec
    name = prometheus.name
    if not name:
        raise InvalidSpecError("metadata.name must not be empty")

    plan = build_volume_plan(
        name, rule_config_map_names, spec.secrets, spec.config_maps,
        storage=spec.storage, extra_volumes=spec.volumes,
        extra_mounts=spec.volume_mounts,
    )
    containers = merge_containers(
        _build_containers(prometheus, config, rule_config_map_names, plan, warnings),
        spec.containers,
    )
    for c in containers:
        c["terminationMessagePolicy"] = TERMINATION_MESSAGE_POLICY

    if input_hash is None:
        input_hash = compute_fingerprint(prometheus, config, rule_config_map_names)
    annotations = _strip_kubectl_annotations(prometheus.annotations)
    annotations.pop(INPUT_HASH_ANNOTATION, None)
    annotations[INPUT_HASH_ANNOTATION] = input_hash

    metadata = {"name": prefixed_name(name)}
    if prometheus.namespace:
        metadata["namespace"] = prometheus.namespace
    metadata["labels"] = _object_labels(prometheus, config)
    metadata["annotations"] = annotations

    sts_spec = {
        "serviceName": GOVERNING_SERVICE,
        "replicas": spec.replicas if spec.replicas is not None else 1,
        "podManagementPolicy": "Parallel",
        "updateStrategy": {"type": "RollingUpdate"},
        "selector": {"matchLabels": selector_labels(name)},
        "template": {
            "metadata": _pod_metadata(prometheus),
            "spec": _pod_spec(prometheus, containers, plan.volumes),
        },
    }
    if plan.volume_claim_templates:
        sts_spec["volumeClaimTemplates"] = plan.volume_claim_templates

    return {
        "apiVersion": "apps/v1",
        "kind": "StatefulSet",
        "metadata": metadata,
        "spec": sts_spec,
    }
