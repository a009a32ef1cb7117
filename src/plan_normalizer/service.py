"""Orchestration layer used by the CLI to load, parse and assess a plan."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, MutableMapping, Sequence, TextIO

from .adapters import PlanLoader, PlanLoaderError
from .insights import plan_warnings
from .models import ParsedPlan
from .parser import ParseError, PlanFormat, PlanParser
from .risk import RiskFinding, RiskRuleError, RiskRuleManager, find_high_risk


@dataclass(slots=True)
class PlanReport:
    """Result returned by :class:`PlanService` runs."""

    plan: ParsedPlan
    warnings: list[str] = field(default_factory=list)
    risks: list[RiskFinding] = field(default_factory=list)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def high_risk_addresses(self) -> list[str]:
        return list(dict.fromkeys(finding.resource.address for finding in self.risks))


PlanLoaderFactory = Callable[..., PlanLoader]


class PlanService:
    """High level service responsible for plan ingestion and assessment."""

    def __init__(
        self,
        *,
        plan_loader_factory: PlanLoaderFactory | None = None,
        parser: PlanParser | None = None,
        risk_rule_manager: RiskRuleManager | None = None,
    ) -> None:
        self._plan_loader_factory = plan_loader_factory or PlanLoader
        self._parser = parser or PlanParser()
        self._risk_rule_manager = risk_rule_manager or RiskRuleManager()

    # ------------------------------------------------------------------
    def run(
        self,
        working_dir: Path,
        *,
        plan_path: Path | None = None,
        plan_file_path: Path | None = None,
        declared_format: PlanFormat | None = None,
        stdin: TextIO | None = None,
        terraform_bin: str = "terraform",
        env: Mapping[str, str] | None = None,
        inherit_environment: bool = False,
        risk_manifests: Sequence[str] | None = None,
    ) -> PlanReport:
        """Load and parse a plan, then collect warnings and high-risk changes."""

        loader_kwargs: MutableMapping[str, Any] = {
            "working_dir": working_dir,
            "plan_path": plan_path,
            "plan_file_path": plan_file_path,
            "declared_format": declared_format,
            "stdin": stdin,
            "terraform_bin": terraform_bin,
            "inherit_environment": inherit_environment,
        }
        if env:
            loader_kwargs["env"] = dict(env)

        loader = self._plan_loader_factory(**loader_kwargs)
        source = loader.load()

        plan = self._parser.parse(source.text, source.format)

        rules = self._risk_rule_manager.enabled_rules(risk_manifests)
        risks = find_high_risk(plan.resource_changes, rules)

        metadata: dict[str, Any] = {
            "source": source.origin,
            "format": source.format.value,
            "resource_count": len(plan.resource_changes),
        }

        return PlanReport(plan=plan, warnings=plan_warnings(plan), risks=risks, metadata=metadata)


__all__ = ["ParseError", "PlanLoaderError", "PlanReport", "PlanService", "RiskRuleError"]
