"""Plan-level models returned by :func:`plan_normalizer.parse_plan`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .resource import ResourceChange


@dataclass(frozen=True, slots=True)
class PlanSummary:
    """Count of resources per action."""

    create: int = 0
    update: int = 0
    delete: int = 0

    @property
    def total(self) -> int:
        return self.create + self.update + self.delete

    def to_dict(self) -> Dict[str, int]:
        return {"create": self.create, "update": self.update, "delete": self.delete}


@dataclass(frozen=True, slots=True)
class ParsedPlan:
    """Ordered resource changes plus the summary derived from them."""

    resource_changes: Tuple[ResourceChange, ...]
    summary: PlanSummary

    @property
    def is_empty(self) -> bool:
        return not self.resource_changes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resourceChanges": [change.to_dict() for change in self.resource_changes],
            "summary": self.summary.to_dict(),
        }
