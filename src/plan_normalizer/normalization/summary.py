"""Summary aggregation over normalized resource changes."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from ..models import ParsedPlan, PlanSummary, ResourceAction, ResourceChange


def summarize(resource_changes: Iterable[ResourceChange]) -> PlanSummary:
    """Count the resources per action."""

    counts = Counter(change.action for change in resource_changes)
    return PlanSummary(
        create=counts[ResourceAction.CREATE],
        update=counts[ResourceAction.UPDATE],
        delete=counts[ResourceAction.DELETE],
    )


def build_plan(resource_changes: Iterable[ResourceChange]) -> ParsedPlan:
    """Freeze ``resource_changes`` into a :class:`ParsedPlan` with its summary."""

    changes = tuple(resource_changes)
    return ParsedPlan(resource_changes=changes, summary=summarize(changes))


__all__ = ["build_plan", "summarize"]
