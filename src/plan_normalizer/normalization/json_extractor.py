"""Extract resource changes from the JSON plan schemas Terraform has emitted."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ..models import ChangeDetails, ParsedPlan, ResourceAction, ResourceChange
from .actions import (
    classify_action_text,
    classify_actions_by_priority,
    classify_actions_in_order,
    classify_by_values,
)
from .addresses import extract_resource_name, extract_resource_type, strip_action_suffix
from .summary import build_plan

logger = logging.getLogger(__name__)

AssistedNormalizer = Callable[[Any], Iterable[Mapping[str, Any]]]
Strategy = Callable[[Any], List[ResourceChange]]

DEFAULT_MAX_DEPTH = 64


class JsonPlanExtractor:
    """Normalize a decoded plan document of unknown schema.

    Strategies are tried in order of schema recency and the first one that
    yields at least one resource wins:

    * an optional assisted normalizer supplied by the caller,
    * the ``resource_changes`` array written by Terraform 0.12 and later,
    * the ``planned_values``/``prior_state`` snapshot pair of older tooling,
      consulted only when the document has no ``resource_changes`` key,
    * a structural search for resource-like objects anywhere in the document.

    An empty result is a valid outcome, not an error.
    """

    def __init__(
        self,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        assisted_normalizer: AssistedNormalizer | None = None,
    ) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be a positive integer")
        self.max_depth = max_depth
        self.assisted_normalizer = assisted_normalizer

    def extract(self, document: Any) -> ParsedPlan:
        """Return the normalized plan for ``document``."""

        strategies: List[Tuple[str, Strategy]] = [
            ("assisted normalizer", self._from_assisted_normalizer),
            ("resource_changes", self._from_resource_changes),
            ("planned/prior state", self._from_state_snapshots),
            ("structural search", self._from_structure),
        ]

        for label, strategy in strategies:
            changes = strategy(document)
            if changes:
                logger.debug("Extracted %d resources with the %s strategy", len(changes), label)
                return build_plan(changes)
            logger.debug("The %s strategy found no resources", label)

        return build_plan([])

    # Assisted normalizer -----------------------------------------------------
    def _from_assisted_normalizer(self, document: Any) -> List[ResourceChange]:
        if self.assisted_normalizer is None:
            return []

        try:
            return [self._map_assisted_entry(entry) for entry in self.assisted_normalizer(document)]
        except Exception as exc:  # noqa: BLE001
            logger.warning("Assisted plan normalizer failed, using built-in strategies: %s", exc)
            return []

    def _map_assisted_entry(self, entry: Mapping[str, Any]) -> ResourceChange:
        address = strip_action_suffix(str(entry["address"]))
        try:
            action = ResourceAction(entry.get("action"))
        except ValueError:
            action = ResourceAction.UPDATE

        return ResourceChange(
            address=address,
            type=_as_str(entry.get("type")) or extract_resource_type(address),
            name=extract_resource_name(address),
            action=action,
            change_details=ChangeDetails(
                before=entry.get("before") or None,
                after=entry.get("after") or None,
                actions=(action.value,),
            ),
            dependencies=_dependencies(entry.get("dependencies")),
        )

    # Terraform >= 0.12 -------------------------------------------------------
    def _from_resource_changes(self, document: Any) -> List[ResourceChange]:
        if not isinstance(document, Mapping):
            return []

        entries = document.get("resource_changes")
        if not isinstance(entries, list):
            return []

        changes: List[ResourceChange] = []
        for entry in entries:
            if not isinstance(entry, Mapping):
                continue

            change = entry.get("change")
            actions = change.get("actions") if isinstance(change, Mapping) else None
            if not actions:
                continue

            action = classify_actions_by_priority(actions)
            if action is None:
                logger.debug("Skipping %s with actions %s", entry.get("address"), actions)
                continue

            raw_address = entry.get("address")
            if not isinstance(raw_address, str) or not raw_address:
                logger.debug("Skipping resource change without an address")
                continue

            address = strip_action_suffix(raw_address)
            changes.append(
                ResourceChange(
                    address=address,
                    type=_as_str(entry.get("type")) or extract_resource_type(address),
                    name=extract_resource_name(address),
                    action=action,
                    change_details=ChangeDetails(
                        before=change.get("before"),
                        after=change.get("after"),
                        actions=(actions,) if isinstance(actions, str) else tuple(actions),
                    ),
                    dependencies=_dependencies(entry.get("depends_on")),
                )
            )

        return changes

    # planned_values / prior_state snapshots ----------------------------------
    def _from_state_snapshots(self, document: Any) -> List[ResourceChange]:
        if not isinstance(document, Mapping):
            return []
        if "resource_changes" in document:
            # Snapshots only stand in for a missing change list.
            return []

        planned_values = document.get("planned_values")
        prior_state = document.get("prior_state")
        if not isinstance(planned_values, Mapping) or not isinstance(prior_state, Mapping):
            return []

        prior_values = prior_state.get("values")
        planned = _index_by_address(self._collect_module_resources(planned_values.get("root_module")))
        prior = _index_by_address(
            self._collect_module_resources(
                prior_values.get("root_module") if isinstance(prior_values, Mapping) else None
            )
        )

        changes: List[ResourceChange] = []
        for address in dict.fromkeys([*planned, *prior]):
            planned_resource = planned.get(address)
            prior_resource = prior.get(address)

            if planned_resource is not None and prior_resource is None:
                action = ResourceAction.CREATE
                details = ChangeDetails(None, planned_resource.get("values"), ("create",))
            elif planned_resource is None and prior_resource is not None:
                action = ResourceAction.DELETE
                details = ChangeDetails(prior_resource.get("values"), None, ("delete",))
            else:
                action = ResourceAction.UPDATE
                details = ChangeDetails(
                    prior_resource.get("values"), planned_resource.get("values"), ("update",)
                )

            resource = planned_resource if planned_resource is not None else prior_resource
            clean_address = strip_action_suffix(address)
            changes.append(
                ResourceChange(
                    address=clean_address,
                    type=_as_str(resource.get("type")) or extract_resource_type(clean_address),
                    name=extract_resource_name(clean_address),
                    action=action,
                    change_details=details,
                    dependencies=_dependencies(
                        resource.get("depends_on") or resource.get("dependencies")
                    ),
                )
            )

        return changes

    def _collect_module_resources(self, module: Any, depth: int = 0) -> List[Mapping[str, Any]]:
        if not isinstance(module, Mapping) or depth >= self.max_depth:
            return []

        resources: List[Mapping[str, Any]] = [
            resource
            for resource in module.get("resources") or []
            if isinstance(resource, Mapping) and isinstance(resource.get("address"), str)
        ]
        for child in module.get("child_modules") or []:
            resources.extend(self._collect_module_resources(child, depth + 1))
        return resources

    # Structural search -------------------------------------------------------
    def _from_structure(self, document: Any) -> List[ResourceChange]:
        found: List[ResourceChange] = []
        self._search(document, 0, set(), found)
        return found

    def _search(self, node: Any, depth: int, visited: Set[int], found: List[ResourceChange]) -> None:
        if depth >= self.max_depth:
            return

        if isinstance(node, Mapping):
            if id(node) in visited:
                return
            visited.add(id(node))

            if _looks_like_resource(node):
                change = self._resource_from_node(node)
                if change is not None:
                    found.append(change)
                return

            for value in node.values():
                self._search(value, depth + 1, visited, found)
        elif isinstance(node, (list, tuple)):
            if id(node) in visited:
                return
            visited.add(id(node))

            for item in node:
                self._search(item, depth + 1, visited, found)

    def _resource_from_node(self, node: Mapping[str, Any]) -> Optional[ResourceChange]:
        change = node.get("change")
        action: Optional[ResourceAction] = None

        if node.get("action"):
            if isinstance(node["action"], str):
                action = classify_action_text(node["action"])
        elif isinstance(change, Mapping) and "actions" in change:
            action = classify_actions_in_order(change["actions"])
        elif "actions" in node:
            action = classify_actions_in_order(node["actions"])
        elif isinstance(change, Mapping):
            action = classify_by_values(change.get("before"), change.get("after"))

        if action is None:
            logger.debug("Ignoring resource-like object %s without a known action", node.get("address"))
            return None

        if isinstance(change, Mapping):
            actions = change.get("actions")
            details = ChangeDetails(
                before=change.get("before"),
                after=change.get("after"),
                actions=tuple(actions) if isinstance(actions, (list, tuple)) else (action.value,),
            )
        else:
            details = ChangeDetails(
                before=node.get("before") or None,
                after=node.get("after") or None,
                actions=(action.value,),
            )

        address = strip_action_suffix(node["address"])
        return ResourceChange(
            address=address,
            type=str(node.get("type") or node.get("resource_type")),
            name=extract_resource_name(address),
            action=action,
            change_details=details,
            dependencies=_dependencies(node.get("depends_on") or node.get("dependencies")),
        )


def _looks_like_resource(node: Mapping[str, Any]) -> bool:
    address = node.get("address")
    return (
        isinstance(address, str)
        and bool(address)
        and bool(node.get("type") or node.get("resource_type"))
        and bool(node.get("change") or node.get("action") or node.get("actions"))
    )


def _index_by_address(resources: Iterable[Mapping[str, Any]]) -> Dict[str, Mapping[str, Any]]:
    index: Dict[str, Mapping[str, Any]] = {}
    for resource in resources:
        index.setdefault(resource["address"], resource)
    return index


def _dependencies(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(item) for item in value)


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


__all__ = ["AssistedNormalizer", "DEFAULT_MAX_DEPTH", "JsonPlanExtractor"]
