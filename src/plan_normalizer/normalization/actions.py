"""Ordered classification rules mapping raw plan data to a single action.

Each table is evaluated top to bottom and the first matching predicate wins.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence, Tuple

from ..models import ResourceAction

ActionRule = Tuple[Callable[[Any], bool], ResourceAction]

TEXT_RULES: Sequence[ActionRule] = (
    (lambda text: "creat" in text, ResourceAction.CREATE),
    (lambda text: "updat" in text, ResourceAction.UPDATE),
    (lambda text: "delet" in text or "destroy" in text, ResourceAction.DELETE),
)

# A replace reports both create and delete; it is shown as a create.
PRIORITY_RULES: Sequence[ActionRule] = (
    (lambda actions: "create" in actions, ResourceAction.CREATE),
    (lambda actions: "delete" in actions, ResourceAction.DELETE),
    (lambda actions: "update" in actions, ResourceAction.UPDATE),
)

IN_ORDER_RULES: Sequence[ActionRule] = (
    (lambda actions: "create" in actions, ResourceAction.CREATE),
    (lambda actions: "update" in actions, ResourceAction.UPDATE),
    (lambda actions: "delete" in actions, ResourceAction.DELETE),
)

VALUE_RULES: Sequence[ActionRule] = (
    (lambda pair: pair[0] is None and pair[1] is not None, ResourceAction.CREATE),
    (lambda pair: pair[0] is not None and pair[1] is None, ResourceAction.DELETE),
    (lambda pair: pair[0] is not None and pair[1] is not None, ResourceAction.UPDATE),
)


def first_match(rules: Sequence[ActionRule], subject: Any) -> Optional[ResourceAction]:
    for predicate, action in rules:
        if predicate(subject):
            return action
    return None


def classify_action_text(text: str) -> Optional[ResourceAction]:
    """Classify free text such as ``destroyed`` or ``will be created``."""

    return first_match(TEXT_RULES, text.lower())


def classify_actions_by_priority(actions: Any) -> Optional[ResourceAction]:
    """Classify a ``change.actions`` list using create > delete > update."""

    subject = _as_action_collection(actions)
    if subject is None:
        return None
    return first_match(PRIORITY_RULES, subject)


def classify_actions_in_order(actions: Any) -> Optional[ResourceAction]:
    """Classify an action list checking create, update, then delete."""

    subject = _as_action_collection(actions)
    if subject is None:
        return None
    return first_match(IN_ORDER_RULES, subject)


def classify_by_values(before: Any, after: Any) -> Optional[ResourceAction]:
    """Infer the action from which side of a change is populated."""

    return first_match(VALUE_RULES, (before, after))


def _as_action_collection(actions: Any) -> Any:
    if isinstance(actions, str):
        return actions
    if isinstance(actions, (list, tuple)):
        return [action for action in actions if isinstance(action, str)]
    return None


__all__ = [
    "ActionRule",
    "classify_action_text",
    "classify_actions_by_priority",
    "classify_actions_in_order",
    "classify_by_values",
    "first_match",
]
