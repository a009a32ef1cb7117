"""Read-only views over a parsed plan used by reporting front-ends."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .models import ParsedPlan, ResourceAction, ResourceChange

NO_RESOURCES_WARNING = (
    "No resources were found in the plan. The format might not be supported or the plan might be empty."
)
MISSING_DETAILS_WARNING = (
    "Some resources were parsed without detailed change information. "
    "The visualization might be incomplete."
)


@dataclass(frozen=True, slots=True)
class ServiceGroup:
    """Per-service action counts."""

    service: str
    create: int = 0
    update: int = 0
    delete: int = 0

    @property
    def total(self) -> int:
        return self.create + self.update + self.delete


def filter_resources(
    resources: Iterable[ResourceChange],
    *,
    search: str | None = None,
    resource_type: str | None = None,
    action: ResourceAction | str | None = None,
) -> List[ResourceChange]:
    """Return resources matching every supplied criterion, in plan order.

    ``search`` is a case-insensitive substring of the address or type,
    ``resource_type`` and ``action`` must match exactly.
    """

    needle = search.lower() if search else ""
    wanted_action = ResourceAction(action) if action else None

    matches: List[ResourceChange] = []
    for resource in resources:
        if needle and needle not in resource.address.lower() and needle not in resource.type.lower():
            continue
        if resource_type and resource.type != resource_type:
            continue
        if wanted_action is not None and resource.action is not wanted_action:
            continue
        matches.append(resource)
    return matches


def service_name(resource_type: str) -> str:
    """Derive a display service from a provider type, e.g. ``aws_s3_bucket`` -> ``S3``."""

    if not resource_type:
        return "Unknown"

    service = resource_type
    if "_" in resource_type:
        service = resource_type.split("_")[1] or resource_type.split("_")[0]
    return service[:1].upper() + service[1:]


def group_by_service(resources: Iterable[ResourceChange]) -> List[ServiceGroup]:
    """Count actions per service, largest groups first."""

    counts: Dict[str, Dict[ResourceAction, int]] = {}
    for resource in resources:
        bucket = counts.setdefault(service_name(resource.type), {action: 0 for action in ResourceAction})
        bucket[resource.action] += 1

    groups = [
        ServiceGroup(
            service=service,
            create=bucket[ResourceAction.CREATE],
            update=bucket[ResourceAction.UPDATE],
            delete=bucket[ResourceAction.DELETE],
        )
        for service, bucket in counts.items()
    ]
    return sorted(groups, key=lambda group: group.total, reverse=True)


def dependency_edges(plan: ParsedPlan) -> List[Tuple[str, str]]:
    """Return ``(dependency, dependent)`` pairs between resources of the plan.

    Dependencies on addresses that are not part of the plan are left out.
    """

    known = {resource.address for resource in plan.resource_changes}
    edges: List[Tuple[str, str]] = []
    for resource in plan.resource_changes:
        for dependency in resource.dependencies or ():
            if dependency in known:
                edges.append((dependency, resource.address))
    return edges


def plan_warnings(plan: ParsedPlan) -> List[str]:
    """Describe degraded parse results a user should be told about."""

    if plan.is_empty:
        return [NO_RESOURCES_WARNING]
    if any(not resource.has_change_details for resource in plan.resource_changes):
        return [MISSING_DETAILS_WARNING]
    return []


__all__ = [
    "MISSING_DETAILS_WARNING",
    "NO_RESOURCES_WARNING",
    "ServiceGroup",
    "dependency_edges",
    "filter_resources",
    "group_by_service",
    "plan_warnings",
    "service_name",
]
