# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Command line interface.

Usage:
    resourceset plan cluster.yaml [--output json|yaml|text]
    resourceset flags cluster.yaml
"""

import argparse
import json
import sys
from typing import Any

import structlog
import yaml

from .builder import ClusterBuilder, PlanResult
from .config import get_settings
from .errors import PlannerError
from .loader import load_cluster
from .logging_config import bind_context, clear_context, configure_logging

logger = structlog.get_logger(__name__)

OUTPUT_FORMATS = ("json", "yaml", "text")


def format_plan_text(plan: PlanResult) -> str:
    """Human-readable plan, one resource per line."""
    lines = [f"Cluster {plan.namespace}/{plan.cluster}", ""]
    lines.append(f"To create ({len(plan.to_create)}):")
    for instance in plan.to_create:
        item = instance.to_dict(plan.cluster)
        lines.append(f"  + {item['kind']:<20} {item['name']}")
    lines.append("")
    lines.append(f"To prune ({len(plan.to_prune)}):")
    for instance in plan.to_prune:
        item = instance.to_dict(plan.cluster)
        lines.append(f"  - {item['kind']:<20} {item['name']}")
    return "\n".join(lines)


def _dump(data: dict[str, Any], output: str) -> str:
    if output == "yaml":
        return yaml.safe_dump(data, sort_keys=False).rstrip("\n")
    return json.dumps(data, indent=2)


def _cmd_plan(args: argparse.Namespace) -> str:
    cluster = load_cluster(args.file)
    bind_context(cluster=cluster.metadata.name, namespace=cluster.metadata.namespace)
    plan = ClusterBuilder(cluster).plan()
    logger.info("Plan computed", to_create=len(plan.to_create), to_prune=len(plan.to_prune))
    if args.output == "text":
        return format_plan_text(plan)
    return _dump(plan.to_dict(), args.output)


def _cmd_flags(args: argparse.Namespace) -> str:
    cluster = load_cluster(args.file)
    flags = ClusterBuilder(cluster).feature_flags().to_dict()
    if args.output == "text":
        return "\n".join(f"{name:<25} {'on' if value else 'off'}" for name, value in flags.items())
    return _dump(flags, args.output)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="resourceset",
        description="Compute the resources a TemporalCluster needs",
    )
    parser.add_argument("--log-level", default=None, help=f"Log level (default: {settings.log_level})")
    parser.add_argument("--log-format", choices=("json", "text"), default=None)

    subparsers = parser.add_subparsers(dest="command", required=True)

    plan_parser = subparsers.add_parser("plan", help="Print resources to create and to prune")
    plan_parser.add_argument("file", help="TemporalCluster manifest (YAML or JSON)")
    plan_parser.add_argument("-o", "--output", choices=OUTPUT_FORMATS, default=settings.default_output)
    plan_parser.set_defaults(handler=_cmd_plan)

    flags_parser = subparsers.add_parser("flags", help="Print the feature flags of a cluster")
    flags_parser.add_argument("file", help="TemporalCluster manifest (YAML or JSON)")
    flags_parser.add_argument("-o", "--output", choices=OUTPUT_FORMATS, default=settings.default_output)
    flags_parser.set_defaults(handler=_cmd_flags)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(log_level=args.log_level, log_format=args.log_format)

    try:
        output = args.handler(args)
    except PlannerError as e:
        logger.error("Command failed", command=args.command, code=e.code.value)
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return e.exit_status
    finally:
        clear_context()

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
