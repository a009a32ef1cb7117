"""Command-line interface implementation for the plan normalizer."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Mapping, Sequence

from ..adapters import PlanLoaderError
from ..insights import filter_resources, group_by_service
from ..models import ParsedPlan, ResourceAction
from ..normalization import build_plan
from ..parser import ParseError, PlanFormat
from ..risk import RiskFinding, RiskRuleError
from ..service import PlanReport, PlanService
from .github_reporting import format_summary

LOG_LEVEL_ENV = "PLAN_NORMALIZER_LOG_LEVEL"
OUTPUT_FORMATS = ("table", "json", "markdown")
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def render_table(plan: ParsedPlan) -> str:
    """Render resource changes as a simple text table for terminal output."""

    if plan.is_empty:
        return "No resource changes found."

    headers = ("Action", "Address", "Type", "Depends on")
    rows = [headers]
    for resource in plan.resource_changes:
        rows.append(
            (
                resource.action.value,
                resource.address,
                resource.type,
                ", ".join(resource.dependencies or ()) or "-",
            )
        )

    widths = [max(len(str(row[idx])) for row in rows) for idx in range(len(headers))]

    def format_row(values: tuple[str, str, str, str]) -> str:
        return "  ".join(value.ljust(width) for value, width in zip(values, widths, strict=True))

    lines = [format_row(headers)]
    lines.append("  ".join("=" * width for width in widths))
    for row in rows[1:]:
        lines.append(format_row(row))

    summary = plan.summary
    lines.append("")
    lines.append(
        f"Plan: {summary.create} to create, {summary.update} to update, {summary.delete} to delete."
    )
    return "\n".join(lines)


def build_payload(report: PlanReport, plan: ParsedPlan, risks: Sequence[RiskFinding]) -> dict[str, Any]:
    """Return the JSON document describing a run."""

    payload = plan.to_dict()
    payload["metadata"] = dict(report.metadata)
    payload["warnings"] = list(report.warnings)
    payload["services"] = [
        {
            "service": group.service,
            "create": group.create,
            "update": group.update,
            "delete": group.delete,
            "total": group.total,
        }
        for group in group_by_service(plan.resource_changes)
    ]
    payload["highRisk"] = [
        {
            "rule": finding.rule.name,
            "description": finding.rule.description,
            "address": finding.resource.address,
            "action": finding.resource.action.value,
        }
        for finding in risks
    ]
    return payload


def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""

    parser = argparse.ArgumentParser(
        prog="plan-normalizer",
        description="Normalize Terraform plan JSON or text output into resource changes.",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv(LOG_LEVEL_ENV, "WARNING"),
        type=str.upper,
        choices=LOG_LEVELS,
        help=f"Logging verbosity written to stderr (default: ${LOG_LEVEL_ENV} or WARNING).",
    )
    subparsers = parser.add_subparsers(dest="command")

    parse_parser = subparsers.add_parser(
        "parse", help="Parse a Terraform plan and report the normalized resource changes."
    )
    parse_parser.add_argument(
        "--log-level",
        default=argparse.SUPPRESS,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging verbosity; overrides the value given before the subcommand.",
    )
    parse_parser.add_argument(
        "path",
        type=Path,
        nargs="?",
        default=None,
        help="Path to a plan exported with `terraform show -json` or captured `terraform plan` text.",
    )
    parse_parser.add_argument(
        "--plan-file",
        type=Path,
        default=None,
        help="Path to a binary Terraform plan generated via `terraform plan -out`.",
    )
    parse_parser.add_argument(
        "--stdin",
        action="store_true",
        help="Read the plan from standard input.",
    )
    parse_parser.add_argument(
        "--input-format",
        choices=["auto", PlanFormat.JSON.value, PlanFormat.TEXT.value],
        default="auto",
        help="Declared format of the plan input; `auto` guesses from the file name and content.",
    )
    parse_parser.add_argument(
        "--working-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory Terraform runs in when rendering a binary plan file.",
    )
    parse_parser.add_argument(
        "--terraform-bin",
        default="terraform",
        help="Name or path of the Terraform executable used to render plan files.",
    )
    parse_parser.add_argument(
        "--env",
        dest="env",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Environment variables to provide to Terraform during execution.",
    )
    parse_parser.add_argument(
        "--inherit-env",
        action="store_true",
        help="Inherit the current environment instead of a minimal PATH-only sandbox.",
    )
    parse_parser.add_argument(
        "--search",
        default=None,
        help="Only show resources whose address or type contains this text.",
    )
    parse_parser.add_argument(
        "--type",
        dest="resource_type",
        default=None,
        help="Only show resources of this exact type.",
    )
    parse_parser.add_argument(
        "--action",
        choices=[action.value for action in ResourceAction],
        default=None,
        help="Only show resources with this action.",
    )
    parse_parser.add_argument(
        "--risk-manifest",
        dest="risk_manifests",
        action="append",
        default=None,
        type=str,
        help="Path to a YAML/JSON manifest adding or overriding high-risk rules.",
    )
    parse_parser.add_argument(
        "--fail-on-risk",
        action="store_true",
        help="Exit with status 1 when high-risk changes are present.",
    )
    parse_parser.add_argument(
        "--format",
        choices=list(OUTPUT_FORMATS),
        default="table",
        help="Output format for the parsed plan.",
    )

    return parser


def create_service() -> PlanService:
    """Create a plan service with the default loader, parser and risk rules."""

    return PlanService()


def _parse_env_values(values: Sequence[str] | None) -> Mapping[str, str]:
    if not values:
        return {}

    env: dict[str, str] = {}
    for value in values:
        if "=" not in value:
            raise ValueError(f"Environment variables must be in KEY=VALUE form: {value}")
        key, raw = value.split("=", 1)
        env[key] = raw
    return env


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _format_output(
    report: PlanReport,
    plan: ParsedPlan,
    risks: Sequence[RiskFinding],
    output_format: str,
) -> str:
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"format must be one of {', '.join(OUTPUT_FORMATS)}")

    payload = build_payload(report, plan, risks)
    if output_format == "json":
        return json.dumps(payload, indent=2)
    if output_format == "markdown":
        return format_summary(payload)

    sections = [render_table(plan)]
    if risks:
        sections.append(
            "\n".join(
                ["High-risk changes:"]
                + [f"  - {finding.resource.address} ({finding.rule.name})" for finding in risks]
            )
        )
    return "\n\n".join(sections)


def _handle_parse(args: argparse.Namespace) -> int:
    if args.path is None and args.plan_file is None and not args.stdin:
        print("Error: provide a plan path, --plan-file or --stdin")
        return 2

    try:
        env = _parse_env_values(args.env)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 2

    service = create_service()
    declared_format = None if args.input_format == "auto" else PlanFormat(args.input_format)

    try:
        report = service.run(
            args.working_dir.resolve(),
            plan_path=args.path.resolve() if args.path else None,
            plan_file_path=args.plan_file.resolve() if args.plan_file else None,
            declared_format=declared_format,
            stdin=sys.stdin if args.stdin else None,
            terraform_bin=args.terraform_bin,
            env=env,
            inherit_environment=args.inherit_env,
            risk_manifests=list(args.risk_manifests or []),
        )
    except (PlanLoaderError, ParseError, RiskRuleError) as exc:
        print(f"Error: {exc}")
        return 2

    for warning in report.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    filtered = build_plan(
        filter_resources(
            report.plan.resource_changes,
            search=args.search,
            resource_type=args.resource_type,
            action=args.action,
        )
    )
    shown = {resource.address for resource in filtered.resource_changes}
    risks = [finding for finding in report.risks if finding.resource.address in shown]

    print(_format_output(report, filtered, risks, args.format))
    return 1 if args.fail_on_risk and risks else 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by tests and the ``python -m`` invocation."""

    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    if args.command == "parse":
        return _handle_parse(args)

    parser.print_help()
    return 0


def run() -> None:  # pragma: no cover - thin wrapper for module execution
    """Execute the CLI and exit with the produced status code."""

    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover - module execution guard
    run()
