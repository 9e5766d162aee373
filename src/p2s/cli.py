"""CLI entry point — load resources, compile, write StatefulSets."""

import argparse
import os
import sys

from p2s.core.convert import make_statefulset
from p2s.io.config import load_config, save_config
from p2s.io.output import emit_warnings, write_statefulsets
from p2s.io.parsing import load_prometheuses
from p2s.pacts.types import CompileError


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Compile Prometheus custom resources into StatefulSet manifests"
    )
    parser.add_argument(
        "--prometheus", required=True,
        help="YAML file with one or more Prometheus resources",
    )
    parser.add_argument(
        "--config", default="p2s.yaml",
        help="Operator configuration file (default: p2s.yaml, defaults if missing)",
    )
    parser.add_argument(
        "--rule-configmap", action="append", default=[], dest="rule_configmaps",
        metavar="NAME",
        help="Rule ConfigMap to mount (repeatable, order is kept)",
    )
    parser.add_argument(
        "--output", default="-",
        help="Where to write the StatefulSets (default: - for stdout)",
    )
    parser.add_argument(
        "--init-config", action="store_true",
        help="Write the effective configuration to --config if it does not exist",
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        if args.init_config and not os.path.exists(args.config):
            save_config(args.config, config)
            print(f"Wrote {args.config}", file=sys.stderr)

        prometheuses = load_prometheuses(args.prometheus)
        print(f"Parsed {len(prometheuses)} Prometheus resource(s)", file=sys.stderr)

        warnings: list[str] = []
        statefulsets = [
            make_statefulset(p, config, args.rule_configmaps, warnings=warnings)
            for p in prometheuses
        ]
    except (CompileError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    emit_warnings(warnings)
    if not statefulsets:
        print("No Prometheus resources found — nothing to write.", file=sys.stderr)
        return 1
    write_statefulsets(statefulsets, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
