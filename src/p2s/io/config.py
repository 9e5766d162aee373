"""Operator configuration file handling — load p2s.yaml into a BuildConfig."""

import dataclasses
import os

import yaml

from p2s.pacts.types import BuildConfig, ConfigurationError

# YAML key → BuildConfig field
_KEYS = {
    "configReloaderImage": "config_reloader_image",
    "configReloaderCPU": "config_reloader_cpu",
    "configReloaderMemory": "config_reloader_memory",
    "prometheusConfigReloaderImage": "prometheus_config_reloader_image",
    "prometheusDefaultBaseImage": "prometheus_default_base_image",
    "thanosDefaultBaseImage": "thanos_default_base_image",
    "prometheusDefaultVersion": "prometheus_default_version",
    "thanosDefaultVersion": "thanos_default_version",
    "labels": "labels",
    "logFormat": "log_format",
    "localHost": "local_host",
}


def _defaults() -> dict:
    return {key: getattr(BuildConfig(), attr) for key, attr in _KEYS.items()}


def config_from_dict(cfg: dict) -> BuildConfig:
    """Build a BuildConfig from camelCase keys, validating names and types."""
    unknown = sorted(set(cfg) - set(_KEYS))
    if unknown:
        raise ConfigurationError(f"unknown configuration key(s): {', '.join(unknown)}")
    values = _defaults()
    values.update(cfg)
    kwargs = {}
    for key, attr in _KEYS.items():
        val = values[key]
        if key == "labels":
            if val is None:
                val = {}
            if not isinstance(val, dict):
                raise ConfigurationError("labels: expected a mapping")
            val = {str(k): str(v) for k, v in val.items()}
        elif isinstance(val, (int, float)) and not isinstance(val, bool):
            # YAML turns "0" or 100 into numbers; quantities are strings
            val = str(val)
        elif not isinstance(val, str):
            raise ConfigurationError(f"{key}: expected a string")
        kwargs[attr] = val
    for key in ("prometheusDefaultBaseImage", "thanosDefaultBaseImage"):
        if not kwargs[_KEYS[key]]:
            raise ConfigurationError(f"{key} must not be empty")
    return BuildConfig(**kwargs)


def load_config(path: str) -> BuildConfig:
    """Load the operator configuration file or return the defaults."""
    if os.path.exists(path):
        try:
            with open(path, encoding="utf-8") as f:
                cfg = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"{path}: invalid YAML ({exc.__class__.__name__})") from exc
    else:
        cfg = {}
    if not isinstance(cfg, dict):
        raise ConfigurationError(f"{path}: expected a mapping at the top level")
    return config_from_dict(cfg)


def config_to_dict(config: BuildConfig) -> dict:
    """Inverse of config_from_dict, used to write a starter config file."""
    values = dataclasses.asdict(config)
    return {key: values[attr] for key, attr in _KEYS.items()}


def save_config(path: str, config: BuildConfig) -> None:
    """Write the operator configuration file."""
    header = "# prometheus2statefulset operator configuration\n\n"
    with open(path, "w", encoding="utf-8") as f:
        f.write(header)
        yaml.dump(config_to_dict(config), f, default_flow_style=False, sort_keys=False)
