import pytest

from p2s.core.volumes import build_volume_plan, config_reloader_mounts, storage_mount
from p2s.pacts.types import ConfigurationError, StorageSpec


def test_default_volumes_and_mounts():
    plan = build_volume_plan("volume-init-test", ["rules-configmap-one"], ["test-secret1"], [])
    assert plan.volumes == [
        {"name": "config", "secret": {"secretName": "prometheus-volume-init-test"}},
        {"name": "tls-assets", "secret": {"secretName": "prometheus-volume-init-test-tls-assets"}},
        {"name": "config-out", "emptyDir": {}},
        {"name": "rules-configmap-one", "configMap": {"name": "rules-configmap-one"}},
        {"name": "secret-test-secret1", "secret": {"secretName": "test-secret1"}},
        {"name": "prometheus-volume-init-test-db", "emptyDir": {}},
    ]
    assert plan.mounts == [
        {"name": "config-out", "readOnly": True, "mountPath": "/etc/prometheus/config_out"},
        {"name": "tls-assets", "readOnly": True, "mountPath": "/etc/prometheus/certs"},
        {"name": "prometheus-volume-init-test-db", "readOnly": False, "mountPath": "/prometheus"},
        {"name": "rules-configmap-one", "readOnly": False,
         "mountPath": "/etc/prometheus/rules/rules-configmap-one"},
        {"name": "secret-test-secret1", "readOnly": True,
         "mountPath": "/etc/prometheus/secrets/test-secret1"},
    ]
    assert plan.volume_claim_templates == []


def test_additional_configmaps_follow_secrets():
    plan = build_volume_plan("p", [], ["s1"], ["cm1", "cm2"])
    names = [v["name"] for v in plan.volumes]
    assert names == ["config", "tls-assets", "config-out", "secret-s1",
                     "configmap-cm1", "configmap-cm2", "prometheus-p-db"]
    assert plan.mounts[-1] == {"name": "configmap-cm2", "readOnly": True,
                               "mountPath": "/etc/prometheus/configmaps/cm2"}


def test_user_volumes_and_mounts_are_appended():
    plan = build_volume_plan(
        "p", [], [], [],
        extra_volumes=[{"name": "extra", "emptyDir": {}}],
        extra_mounts=[{"name": "extra", "mountPath": "/extra"}],
    )
    assert [v["name"] for v in plan.volumes][-2:] == ["extra", "prometheus-p-db"]
    assert plan.mounts[-1] == {"name": "extra", "mountPath": "/extra"}


def test_empty_dir_storage_is_copied():
    medium = {"medium": "Memory"}
    plan = build_volume_plan("p", [], [], [], storage=StorageSpec(empty_dir=medium))
    assert plan.volumes[-1] == {"name": "prometheus-p-db", "emptyDir": {"medium": "Memory"}}
    plan.volumes[-1]["emptyDir"]["sizeLimit"] = "1Gi"
    assert medium == {"medium": "Memory"}


def test_claim_template_replaces_storage_volume():
    template = {"spec": {"resources": {"requests": {"storage": "10Gi"}}}}
    plan = build_volume_plan("p", [], [], [], storage=StorageSpec(volume_claim_template=template))
    assert "prometheus-p-db" not in [v["name"] for v in plan.volumes]
    assert plan.volume_claim_templates == [{
        "spec": {"resources": {"requests": {"storage": "10Gi"}},
                 "accessModes": ["ReadWriteOnce"]},
        "metadata": {"name": "prometheus-p-db"},
    }]
    assert template == {"spec": {"resources": {"requests": {"storage": "10Gi"}}}}
    assert plan.mounts[2] == {"name": "prometheus-p-db", "readOnly": False,
                              "mountPath": "/prometheus", "subPath": "prometheus-db"}


def test_claim_template_name_and_sub_path_opt_out():
    storage = StorageSpec(
        volume_claim_template={"metadata": {"name": "data"},
                               "spec": {"accessModes": ["ReadWriteMany"]}},
        disable_mount_sub_path=True,
    )
    plan = build_volume_plan("p", [], [], [], storage=storage)
    pvc = plan.volume_claim_templates[0]
    assert pvc["metadata"]["name"] == "data"
    assert pvc["spec"]["accessModes"] == ["ReadWriteMany"]
    assert storage_mount(plan) == {"name": "data", "readOnly": False, "mountPath": "/prometheus"}


def test_claim_template_and_empty_dir_conflict():
    storage = StorageSpec(volume_claim_template={}, empty_dir={})
    with pytest.raises(ConfigurationError):
        build_volume_plan("p", [], [], [], storage=storage)


def test_config_reloader_mounts():
    assert config_reloader_mounts() == [
        {"name": "config", "readOnly": False, "mountPath": "/etc/prometheus/config"},
        {"name": "config-out", "readOnly": False, "mountPath": "/etc/prometheus/config_out"},
    ]
