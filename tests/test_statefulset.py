import dataclasses

import pytest

from p2s.core.convert import compute_fingerprint, make_statefulset
from p2s.io.parsing import parse_prometheus
from p2s.pacts.types import (
    ConfigurationError, InvalidSpecError, Prometheus, PrometheusSpec, StorageSpec,
)


def test_envelope(build):
    sts = build(name="test", namespace="monitoring")
    assert sts["apiVersion"] == "apps/v1"
    assert sts["kind"] == "StatefulSet"
    assert sts["metadata"]["name"] == "prometheus-test"
    assert sts["metadata"]["namespace"] == "monitoring"
    assert sts["spec"]["serviceName"] == "prometheus-operated"
    assert sts["spec"]["replicas"] == 1
    assert sts["spec"]["podManagementPolicy"] == "Parallel"
    assert sts["spec"]["updateStrategy"] == {"type": "RollingUpdate"}
    assert sts["spec"]["template"]["spec"]["terminationGracePeriodSeconds"] == 600


def test_labels_and_annotations(build):
    labels = {"testlabel": "testlabelvalue"}
    annotations = {
        "testannotation": "testannotationvalue",
        "kubectl.kubernetes.io/last-applied-configuration": "something",
        "kubectl.kubernetes.io/something-else": "test",
    }
    sts = build(labels=labels, annotations=annotations)
    assert sts["metadata"]["labels"] == labels
    assert sts["metadata"]["annotations"] == {
        "prometheus-operator-input-hash": "",
        "testannotation": "testannotationvalue",
    }
    assert list(sts["metadata"]["annotations"])[-1] == "prometheus-operator-input-hash"


def test_operator_labels_lose_to_user_labels(build, config):
    cfg = dataclasses.replace(config, labels={"team": "ops", "env": "prod"})
    sts = build(cfg=cfg, labels={"env": "dev"})
    assert sts["metadata"]["labels"] == {"team": "ops", "env": "dev"}


def test_pod_metadata(build):
    spec = PrometheusSpec(pod_metadata={
        "labels": {"testlabel": "testvalue", "prometheus": "attempt-to-override"},
        "annotations": {"testannotation": "testvalue"},
    })
    sts = build(name="test", spec=spec)
    meta = sts["spec"]["template"]["metadata"]
    assert meta["labels"] == {"testlabel": "testvalue", "app": "prometheus", "prometheus": "test"}
    assert meta["annotations"] == {"testannotation": "testvalue"}
    assert sts["spec"]["selector"]["matchLabels"] == {"app": "prometheus", "prometheus": "test"}


def test_selector_does_not_depend_on_pod_labels(build):
    plain = build(name="test")
    labelled = build(name="test", spec=PrometheusSpec(pod_metadata={"labels": {"x": "y"}}))
    assert plain["spec"]["selector"] == labelled["spec"]["selector"]
    assert "annotations" not in plain["spec"]["template"]["metadata"]


def test_termination_message_policy(build, containers):
    spec = PrometheusSpec(containers=[{"name": "extra", "image": "x"}])
    for c in containers(build(spec=spec)):
        assert c["terminationMessagePolicy"] == "FallbackToLogsOnError"


def test_memory_request_defaulted(build, containers):
    sts = build(spec=PrometheusSpec(resources={"limits": {"memory": "3Gi"}}))
    assert containers(sts)[0]["resources"]["requests"] == {"memory": "2Gi"}
    sts = build(spec=PrometheusSpec(resources={"limits": {"memory": "1Gi"}}))
    assert containers(sts)[0]["resources"]["requests"] == {"memory": "1Gi"}


def test_claim_template_storage(build):
    storage = StorageSpec(volume_claim_template={
        "spec": {"resources": {"requests": {"storage": "50Gi"}}},
    })
    sts = build(name="test", spec=PrometheusSpec(storage=storage))
    assert sts["spec"]["volumeClaimTemplates"][0]["metadata"]["name"] == "prometheus-test-db"
    volumes = [v["name"] for v in sts["spec"]["template"]["spec"]["volumes"]]
    assert "prometheus-test-db" not in volumes


def test_empty_dir_storage(build):
    sts = build(name="test", spec=PrometheusSpec(storage=StorageSpec(empty_dir={"medium": "Memory"})))
    assert "volumeClaimTemplates" not in sts["spec"]
    assert sts["spec"]["template"]["spec"]["volumes"][-1] == {
        "name": "prometheus-test-db", "emptyDir": {"medium": "Memory"},
    }


def test_conflicting_storage(build):
    storage = StorageSpec(volume_claim_template={}, empty_dir={})
    with pytest.raises(ConfigurationError):
        build(spec=PrometheusSpec(storage=storage))


def test_unsupported_version(build):
    with pytest.raises(InvalidSpecError):
        build(spec=PrometheusSpec(version="v0.9.0"))


def test_pod_spec_passthrough(build):
    spec = PrometheusSpec(
        replicas=3,
        service_account_name="prometheus",
        node_selector={"disk": "ssd"},
        tolerations=[{"key": "dedicated", "operator": "Exists"}],
        affinity={"podAntiAffinity": {}},
        security_context={"runAsUser": 1000},
        priority_class_name="high",
        init_containers=[{"name": "init", "image": "busybox"}],
    )
    sts = build(spec=spec)
    pod = sts["spec"]["template"]["spec"]
    assert sts["spec"]["replicas"] == 3
    assert pod["serviceAccountName"] == "prometheus"
    assert pod["nodeSelector"] == {"disk": "ssd"}
    assert pod["tolerations"] == [{"key": "dedicated", "operator": "Exists"}]
    assert pod["affinity"] == {"podAntiAffinity": {}}
    assert pod["securityContext"] == {"runAsUser": 1000}
    assert pod["priorityClassName"] == "high"
    assert pod["initContainers"] == [{"name": "init", "image": "busybox"}]


def test_compilation_is_deterministic(config):
    prom = Prometheus(name="test", annotations={"a": "b"},
                      spec=PrometheusSpec(secrets=["s"], retention="7d"))
    first = make_statefulset(prom, config, ["rules"])
    second = make_statefulset(prom, config, ["rules"])
    assert first == second
    digest = first["metadata"]["annotations"]["prometheus-operator-input-hash"]
    assert len(digest) == 64


def test_input_hash_given_is_used_verbatim(config):
    sts = make_statefulset(Prometheus(name="test"), config, input_hash="abc")
    assert sts["metadata"]["annotations"] == {"prometheus-operator-input-hash": "abc"}


def test_fingerprint(config):
    prom = Prometheus(name="test", spec=PrometheusSpec(retention="7d"))
    base = compute_fingerprint(prom, config, ["rules"])
    assert compute_fingerprint(prom, config, ["rules"]) == base
    assert compute_fingerprint(prom, config, ["other"]) != base
    changed = Prometheus(name="test", spec=PrometheusSpec(retention="8d"))
    assert compute_fingerprint(changed, config, ["rules"]) != base


def test_fingerprint_ignores_kubectl_annotations_and_key_order(config):
    a = Prometheus(name="test", labels={"x": "1", "y": "2"})
    b = Prometheus(name="test", labels={"y": "2", "x": "1"},
                   annotations={"kubectl.kubernetes.io/last-applied-configuration": "{}"})
    assert compute_fingerprint(a, config) == compute_fingerprint(b, config)


def test_inputs_are_not_mutated(config):
    spec = PrometheusSpec(
        resources={"limits": {"memory": "3Gi"}},
        containers=[{"name": "prometheus", "env": [{"name": "A", "value": "1"}]}],
        pod_metadata={"labels": {"a": "b"}},
    )
    prom = Prometheus(name="test", spec=spec)
    make_statefulset(prom, config, ["rules"], input_hash="")
    assert spec.resources == {"limits": {"memory": "3Gi"}}
    assert spec.containers == [{"name": "prometheus", "env": [{"name": "A", "value": "1"}]}]
    assert spec.pod_metadata == {"labels": {"a": "b"}}


def test_compile_from_custom_resource_dict(config):
    doc = {
        "apiVersion": "monitoring.coreos.com/v1",
        "kind": "Prometheus",
        "metadata": {"name": "k8s", "namespace": "monitoring", "labels": {"team": "a"}},
        "spec": {"version": "v2.7.0", "retentionSize": "10GB"},
    }
    sts = make_statefulset(parse_prometheus(doc), config, input_hash="")
    assert sts["metadata"]["name"] == "prometheus-k8s"
    args = sts["spec"]["template"]["spec"]["containers"][0]["args"]
    assert "--storage.tsdb.retention.size=10GB" in args


def test_warnings_are_collected(config):
    warnings = []
    prom = Prometheus(name="test", spec=PrometheusSpec(version="v2.5.0", retention_size="1GB"))
    make_statefulset(prom, config, input_hash="", warnings=warnings)
    assert len(warnings) == 1
    assert "retentionSize" in warnings[0]


def test_empty_name_is_rejected(config):
    with pytest.raises(InvalidSpecError, match="metadata.name"):
        make_statefulset(Prometheus(name=""), config, input_hash="")


def test_fingerprint_normalizes_numbers(config):
    as_int = Prometheus(name="test", spec=PrometheusSpec(resources={"limits": {"cpu": 1}}))
    as_float = Prometheus(name="test", spec=PrometheusSpec(resources={"limits": {"cpu": 1.0}}))
    fractional = Prometheus(name="test", spec=PrometheusSpec(resources={"limits": {"cpu": 1.5}}))
    assert compute_fingerprint(as_int, config) == compute_fingerprint(as_float, config)
    assert compute_fingerprint(fractional, config) != compute_fingerprint(as_int, config)
