import pytest

from p2s.core.convert import make_statefulset
from p2s.pacts.types import BuildConfig, Prometheus, PrometheusSpec


@pytest.fixture
def config():
    """Operator configuration used by most tests."""
    return BuildConfig(
        config_reloader_image="jimmidyson/configmap-reload:latest",
        config_reloader_cpu="100m",
        config_reloader_memory="25Mi",
        prometheus_config_reloader_image="quay.io/prometheus-operator/prometheus-config-reloader:latest",
        prometheus_default_base_image="quay.io/prometheus/prometheus",
        thanos_default_base_image="quay.io/thanos/thanos",
    )


@pytest.fixture
def build(config):
    """Compile a Prometheus built from keyword arguments with a fixed input hash."""
    def _build(spec=None, rules=None, cfg=None, **meta):
        meta.setdefault("name", "test")
        prom = Prometheus(spec=spec or PrometheusSpec(), **meta)
        return make_statefulset(prom, cfg or config, rules, input_hash="")
    return _build


@pytest.fixture
def containers():
    """Accessor for the pod containers of a compiled StatefulSet."""
    return lambda sts: sts["spec"]["template"]["spec"]["containers"]
