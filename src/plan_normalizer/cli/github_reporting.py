"""Helpers for publishing parsed plans to GitHub Actions surfaces."""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Iterable, Mapping, MutableMapping, Sequence

ACTION_ORDER = ["create", "update", "delete"]
RESOURCE_DISPLAY_LIMIT = 25


def _normalize_counts(raw_counts: Mapping[str, int] | None) -> MutableMapping[str, int]:
    counts: MutableMapping[str, int] = {action: 0 for action in ACTION_ORDER}
    if not raw_counts:
        return counts
    for action, value in raw_counts.items():
        action_key = str(action).lower()
        if action_key in counts:
            counts[action_key] = int(value)
    return counts


def format_summary(report: Mapping[str, object]) -> str:
    """Render a Markdown job summary for the provided report."""

    summary: Mapping[str, int] = report.get("summary") or {}
    metadata: Mapping[str, object] = report.get("metadata") or {}
    resources: Sequence[Mapping[str, object]] = report.get("resourceChanges") or []
    warnings: Sequence[str] = report.get("warnings") or []
    high_risk: Sequence[Mapping[str, object]] = report.get("highRisk") or []

    counts = _normalize_counts(summary)

    lines: list[str] = [
        "# Terraform Plan Summary",
        "",
        f"**Resources changed:** {sum(counts.values())}",
        "",
        "| Action | Resources |",
        "| --- | ---: |",
    ]

    for action in ACTION_ORDER:
        lines.append(f"| {action.title()} | {counts[action]} |")

    if metadata:
        lines.extend(["", "## Metadata", ""])
        for key in sorted(metadata):
            lines.append(f"- **{key}:** {metadata[key]}")

    if warnings:
        lines.extend(["", "## Warnings", ""])
        for warning in warnings:
            lines.append(f"> {warning}")

    if high_risk:
        lines.extend(["", "## High-risk changes", ""])
        for finding in high_risk:
            address = str(finding.get("address", "")).strip()
            rule = str(finding.get("rule", "")).strip()
            description = str(finding.get("description", "")).strip()
            bullet = f"- `{address}`"
            if rule:
                bullet += f" ({rule})"
            if description:
                bullet += f": {description}"
            lines.append(bullet)

    if resources:
        lines.extend(["", "## Resources", ""])
        for resource in resources[:RESOURCE_DISPLAY_LIMIT]:
            action = str(resource.get("action", "")).lower()
            address = str(resource.get("address", "")).strip()
            resource_type = str(resource.get("type", "")).strip()
            bullet = f"- **{action.title()}** `{address}`"
            if resource_type:
                bullet += f" _({resource_type})_"
            lines.append(bullet)

        remaining = len(resources) - RESOURCE_DISPLAY_LIMIT
        if remaining > 0:
            lines.append(f"- ...and {remaining} more resources.")

    lines.append("")
    return "\n".join(lines)


def iter_annotations(report: Mapping[str, object]) -> Iterable[str]:
    """Generate workflow command annotations for high-risk changes and warnings."""

    high_risk: Sequence[Mapping[str, object]] = report.get("highRisk") or []
    for finding in high_risk:
        address = str(finding.get("address", "")).strip()
        action = str(finding.get("action", "")).strip()
        rule = str(finding.get("rule", "")).strip()
        description = str(finding.get("description", "")).strip()

        title = " - ".join(part for part in ("High-risk change", rule) if part)
        body_parts = []
        if address:
            body_parts.append(f"{address} will be {action}d" if action else address)
        if description:
            body_parts.append(description)
        if not body_parts:
            body_parts.append("High-risk change reported without details.")

        yield f"::warning title={title}::{_escape('; '.join(body_parts))}"

    warnings: Sequence[str] = report.get("warnings") or []
    for warning in warnings:
        yield f"::notice title=Plan parsing::{_escape(str(warning))}"


def _escape(body: str) -> str:
    return body.replace("%", "%25").replace("\r", "").replace("\n", "%0A")


def _load_report(path: Path) -> Mapping[str, object]:
    raw = path.read_text(encoding="utf-8-sig")
    if not raw.strip():
        return {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse report JSON from '{path}': {exc.msg}.") from exc

    if not isinstance(data, Mapping):
        raise ValueError("Report JSON must be an object.")
    return data


def _write_summary(report: Mapping[str, object], destination: Path | None) -> None:
    if destination is None:
        return

    content = format_summary(report)
    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("a", encoding="utf-8") as handle:
        handle.write(content)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Publish a parsed plan as GitHub job summary and annotations."
    )
    parser.add_argument(
        "report", type=Path, help="Path to the JSON report written by `plan-normalizer parse --format json`."
    )
    parser.add_argument(
        "--summary-path",
        type=Path,
        default=None,
        help="Optional explicit path for the GitHub job summary output.",
    )

    args = parser.parse_args(argv)

    summary_path = args.summary_path
    if summary_path is None:
        summary_env = os.getenv("GITHUB_STEP_SUMMARY")
        if summary_env:
            summary_path = Path(summary_env)

    try:
        report = _load_report(args.report)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}")
        return 2

    _write_summary(report, summary_path)

    for command in iter_annotations(report):
        print(command)

    return 0


def run() -> None:  # pragma: no cover - wrapper for console entry point
    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover - module execution guard
    run()
