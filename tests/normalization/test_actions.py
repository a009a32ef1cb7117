from __future__ import annotations

import pytest

from plan_normalizer.models import ResourceAction
from plan_normalizer.normalization.actions import (
    classify_action_text,
    classify_actions_by_priority,
    classify_actions_in_order,
    classify_by_values,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("created", ResourceAction.CREATE),
        ("Will be CREATED", ResourceAction.CREATE),
        ("updated", ResourceAction.UPDATE),
        ("deleted", ResourceAction.DELETE),
        ("destroyed", ResourceAction.DELETE),
        ("read", None),
    ],
)
def test_classify_action_text(text: str, expected: ResourceAction | None) -> None:
    assert classify_action_text(text) is expected


def test_priority_classification_treats_replace_as_create() -> None:
    assert classify_actions_by_priority(["delete", "create"]) is ResourceAction.CREATE
    assert classify_actions_by_priority(["create", "delete"]) is ResourceAction.CREATE
    assert classify_actions_by_priority(["update", "delete"]) is ResourceAction.DELETE
    assert classify_actions_by_priority(["no-op"]) is None
    assert classify_actions_by_priority(None) is None


def test_in_order_classification_prefers_update_over_delete() -> None:
    assert classify_actions_in_order(["delete", "update"]) is ResourceAction.UPDATE
    assert classify_actions_in_order(["delete"]) is ResourceAction.DELETE
    assert classify_actions_in_order({"create": True}) is None


@pytest.mark.parametrize(
    ("before", "after", "expected"),
    [
        (None, {"a": 1}, ResourceAction.CREATE),
        ({"a": 1}, None, ResourceAction.DELETE),
        ({"a": 1}, {"a": 2}, ResourceAction.UPDATE),
        (None, None, None),
    ],
)
def test_classify_by_values(before, after, expected) -> None:
    assert classify_by_values(before, after) is expected
