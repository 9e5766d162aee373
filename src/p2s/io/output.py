"""Output writing — StatefulSet YAML, warnings."""

import sys

import yaml


def dump_statefulsets(statefulsets: list[dict], stream) -> None:
    """Write StatefulSets as a multi-document YAML stream, in construction order."""
    stream.write("# Generated by prometheus2statefulset — do not edit manually\n")
    yaml.safe_dump_all(statefulsets, stream, default_flow_style=False,
                       sort_keys=False, explicit_start=True)


def write_statefulsets(statefulsets: list[dict], path: str) -> None:
    """Write StatefulSets to *path*, or stdout when path is ``-``."""
    if path == "-":
        dump_statefulsets(statefulsets, sys.stdout)
        return
    with open(path, "w", encoding="utf-8") as f:
        dump_statefulsets(statefulsets, f)
    print(f"Wrote {path}", file=sys.stderr)


def emit_warnings(warnings: list[str]) -> None:
    """Print all warnings to stderr."""
    for w in warnings:
        print(f"⚠ {w}", file=sys.stderr)
