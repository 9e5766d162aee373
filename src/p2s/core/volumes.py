"""Volume and volume mount construction — secrets, ConfigMaps, storage."""

import copy
from dataclasses import dataclass, field

from p2s.core.constants import (
    CONF_DIR, CONF_OUT_DIR, CONFIG_OUT_VOLUME, CONFIG_VOLUME, CONFIGMAPS_DIR,
    RULES_DIR, SECRETS_DIR, STORAGE_DIR, STORAGE_SUB_PATH, TLS_ASSETS_DIR,
    TLS_ASSETS_VOLUME, config_secret_name, storage_volume_name,
    tls_assets_secret_name,
)
from p2s.pacts.types import ConfigurationError, StorageSpec


@dataclass
class VolumePlan:
    """Volumes of the pod and mounts of the Prometheus container."""
    volumes: list = field(default_factory=list)
    mounts: list = field(default_factory=list)
    volume_claim_templates: list = field(default_factory=list)
    storage_volume: str = ""
    storage_sub_path: str = ""


def _secret_volume(name: str, secret_name: str) -> dict:
    return {"name": name, "secret": {"secretName": secret_name}}


def _configmap_volume(name: str, cm_name: str) -> dict:
    return {"name": name, "configMap": {"name": cm_name}}


def _mount(name: str, mount_path: str, read_only: bool, sub_path: str = "") -> dict:
    vm = {"name": name, "readOnly": read_only, "mountPath": mount_path}
    if sub_path:
        vm["subPath"] = sub_path
    return vm


def _storage_sub_path(storage: StorageSpec | None) -> str:
    """Claim templates are mounted through a sub-directory unless disabled."""
    if storage is None or storage.volume_claim_template is None:
        return ""
    if storage.disable_mount_sub_path:
        return ""
    return STORAGE_SUB_PATH


def _build_claim_template(template: dict, default_name: str) -> dict:
    """Copy a user claim template, filling in its name and access modes."""
    pvc = copy.deepcopy(template)
    meta = pvc.setdefault("metadata", {})
    if not meta.get("name"):
        meta["name"] = default_name
    spec = pvc.setdefault("spec", {})
    if not spec.get("accessModes"):
        spec["accessModes"] = ["ReadWriteOnce"]
    return pvc


def _storage_volumes(storage: StorageSpec | None, volume_name: str) -> tuple[list, list, str]:
    """Return (pod volumes, claim templates, effective volume name) for storage."""
    if storage is not None and storage.volume_claim_template is not None:
        if storage.empty_dir is not None:
            raise ConfigurationError(
                "storage: volumeClaimTemplate and emptyDir are mutually exclusive")
        pvc = _build_claim_template(storage.volume_claim_template, volume_name)
        return [], [pvc], pvc["metadata"]["name"]
    empty_dir = {}
    if storage is not None and storage.empty_dir is not None:
        empty_dir = copy.deepcopy(storage.empty_dir)
    return [{"name": volume_name, "emptyDir": empty_dir}], [], volume_name


def build_volume_plan(name: str, rule_config_map_names: list[str],
                      secrets: list[str], config_maps: list[str],
                      storage: StorageSpec | None = None,
                      extra_volumes: list | None = None,
                      extra_mounts: list | None = None) -> VolumePlan:
    """Build the pod volume list and the Prometheus container mounts.

    Volumes: config, tls-assets, config-out, rule ConfigMaps, secrets,
    additional ConfigMaps, user volumes, storage. Mounts: config-out,
    tls-assets, storage, rule ConfigMaps, secrets, additional ConfigMaps,
    user mounts.
    """
    plan = VolumePlan()
    plan.volumes = [
        _secret_volume(CONFIG_VOLUME, config_secret_name(name)),
        _secret_volume(TLS_ASSETS_VOLUME, tls_assets_secret_name(name)),
        {"name": CONFIG_OUT_VOLUME, "emptyDir": {}},
    ]
    for cm in rule_config_map_names:
        plan.volumes.append(_configmap_volume(cm, cm))
    for s in secrets:
        plan.volumes.append(_secret_volume(f"secret-{s}", s))
    for cm in config_maps:
        plan.volumes.append(_configmap_volume(f"configmap-{cm}", cm))
    plan.volumes.extend(copy.deepcopy(extra_volumes or []))

    storage_vols, plan.volume_claim_templates, plan.storage_volume = \
        _storage_volumes(storage, storage_volume_name(name))
    plan.volumes.extend(storage_vols)
    plan.storage_sub_path = _storage_sub_path(storage)

    plan.mounts = [
        _mount(CONFIG_OUT_VOLUME, CONF_OUT_DIR, True),
        _mount(TLS_ASSETS_VOLUME, TLS_ASSETS_DIR, True),
        _mount(plan.storage_volume, STORAGE_DIR, False, plan.storage_sub_path),
    ]
    plan.mounts.extend(rule_mounts(rule_config_map_names))
    for s in secrets:
        plan.mounts.append(_mount(f"secret-{s}", f"{SECRETS_DIR}/{s}", True))
    for cm in config_maps:
        plan.mounts.append(_mount(f"configmap-{cm}", f"{CONFIGMAPS_DIR}/{cm}", True))
    plan.mounts.extend(copy.deepcopy(extra_mounts or []))
    return plan


def rule_mounts(rule_config_map_names: list[str]) -> list[dict]:
    """Mounts of the rule ConfigMaps (shared by Prometheus and the rules reloader)."""
    return [_mount(cm, f"{RULES_DIR}/{cm}", False) for cm in rule_config_map_names]


def config_reloader_mounts() -> list[dict]:
    """The reloader reads the generated config and writes the substituted copy."""
    return [
        _mount(CONFIG_VOLUME, CONF_DIR, False),
        _mount(CONFIG_OUT_VOLUME, CONF_OUT_DIR, False),
    ]


def storage_mount(plan: VolumePlan) -> dict:
    """Writable data directory mount, as given to the Thanos sidecar."""
    return _mount(plan.storage_volume, STORAGE_DIR, False, plan.storage_sub_path)
