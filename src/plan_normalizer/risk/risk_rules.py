"""Load risk rule manifests and match them against resource changes."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Sequence

import yaml

from ..models import ResourceAction, ResourceChange


class RiskRuleError(RuntimeError):
    """Raised when risk rule manifests cannot be loaded or parsed."""


@dataclass(slots=True)
class RiskRule:
    """A named condition marking a resource change as high risk.

    A change matches when its action is listed in ``actions`` (any action when
    empty) and its type contains one of ``type_patterns`` or its address
    contains one of ``address_keywords``. A rule without patterns or keywords
    matches on the action alone.
    """

    name: str
    enabled: bool = True
    description: str = ""
    actions: List[ResourceAction] = field(default_factory=list)
    type_patterns: List[str] = field(default_factory=list)
    address_keywords: List[str] = field(default_factory=list)

    def matches(self, resource: ResourceChange) -> bool:
        if self.actions and resource.action not in self.actions:
            return False

        if not self.type_patterns and not self.address_keywords:
            return True

        if any(pattern in resource.type for pattern in self.type_patterns):
            return True

        address = resource.address.lower()
        return any(keyword.lower() in address for keyword in self.address_keywords)


@dataclass(frozen=True, slots=True)
class RiskFinding:
    """A resource change matched by a risk rule."""

    rule: RiskRule
    resource: ResourceChange


_DEFAULT_MANIFEST = Path(__file__).resolve().parent / "manifests" / "default-risk-rules.yaml"


class RiskRuleManager:
    """Merge risk rule manifests and expose the enabled rules."""

    def __init__(self, default_manifests: Sequence[Path | str] | None = None) -> None:
        manifest_paths: List[Path]
        if default_manifests is None:
            manifest_paths = []
            if _DEFAULT_MANIFEST.exists():
                manifest_paths.append(_DEFAULT_MANIFEST)
        else:
            manifest_paths = [Path(path) for path in default_manifests]

        self._default_manifests = manifest_paths

    # ------------------------------------------------------------------
    def load(self, manifests: Sequence[Path | str] | None = None) -> List[RiskRule]:
        """Return all rules defined by the default and supplied manifests.

        Rules are merged by name; later manifests override earlier ones.
        """

        manifest_paths = [Path(path) for path in self._default_manifests]
        if manifests:
            manifest_paths.extend(Path(path) for path in manifests)

        rules: MutableMapping[str, RiskRule] = {}
        for manifest_path in manifest_paths:
            data = self._load_manifest(manifest_path)
            for rule_config in data.get("rules", []) or []:
                if not isinstance(rule_config, Mapping):
                    continue
                name = str(rule_config.get("name") or "").strip()
                if not name:
                    continue

                rule = rules.get(name, RiskRule(name=name))
                if "enabled" in rule_config:
                    rule.enabled = bool(rule_config["enabled"])
                if rule_config.get("description"):
                    rule.description = str(rule_config["description"])
                if "actions" in rule_config:
                    rule.actions = self._parse_actions(manifest_path, rule_config["actions"])
                if "type_patterns" in rule_config:
                    rule.type_patterns = _string_list(rule_config["type_patterns"])
                if "address_keywords" in rule_config:
                    rule.address_keywords = _string_list(rule_config["address_keywords"])

                rules[rule.name] = rule

        return list(rules.values())

    # ------------------------------------------------------------------
    def enabled_rules(self, manifests: Sequence[Path | str] | None = None) -> List[RiskRule]:
        """Return only the rules that are enabled after merging manifests."""

        return [rule for rule in self.load(manifests) if rule.enabled]

    # ------------------------------------------------------------------
    def _parse_actions(self, path: Path, values: Any) -> List[ResourceAction]:
        actions: List[ResourceAction] = []
        for value in _string_list(values):
            try:
                actions.append(ResourceAction(value.strip().lower()))
            except ValueError as exc:
                raise RiskRuleError(f"Unknown action '{value}' in risk manifest {path}") from exc
        return actions

    def _load_manifest(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise RiskRuleError(f"Risk rule manifest not found: {path}")

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:  # pragma: no cover - filesystem errors surfaced to caller
            raise RiskRuleError(f"Failed to read risk rule manifest {path}") from exc

        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as exc:
            raise RiskRuleError(f"Invalid YAML in risk rule manifest {path}") from exc

        if not isinstance(data, Mapping):
            raise RiskRuleError(f"Risk rule manifest must be a mapping: {path}")

        return dict(data)


def find_high_risk(
    resources: Iterable[ResourceChange],
    rules: Iterable[RiskRule],
) -> List[RiskFinding]:
    """Return a finding for every (enabled rule, resource) pair that matches."""

    active = [rule for rule in rules if rule.enabled]
    findings: List[RiskFinding] = []
    for resource in resources:
        for rule in active:
            if rule.matches(resource):
                findings.append(RiskFinding(rule=rule, resource=resource))
    return findings


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    return []


__all__ = ["RiskFinding", "RiskRule", "RiskRuleError", "RiskRuleManager", "find_high_risk"]
