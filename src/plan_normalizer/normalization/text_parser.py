"""Line-oriented parser for the human-readable ``terraform plan`` output."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..models import ChangeDetails, ParsedPlan, ResourceAction, ResourceChange
from .actions import classify_action_text
from .addresses import extract_resource_name, extract_resource_type
from .summary import build_plan
from .values import coerce_attribute_value, split_changed_value, strip_trailing_comment

logger = logging.getLogger(__name__)

PLAN_MARKER = "Terraform will perform the following actions:"

_PLAN_START = re.compile(re.escape(PLAN_MARKER), re.IGNORECASE)
_RESOURCE_HEADER = re.compile(
    r"^#\s*(.*?)\s+will be\s+(created|updated|deleted|destroyed)", re.IGNORECASE
)
_RESOURCE_BLOCK = re.compile(
    r'^(-/\+|\+/-|[+~-])?\s*resource\s+"([^"]+)"\s+"([^"]+)"\s*\{', re.IGNORECASE
)
_DEPENDS_ON = re.compile(r"^#\s+depends on:\s*$", re.IGNORECASE)
_DEPENDENCY_ITEM = re.compile(r"^#\s+-\s+(.*)")
_ATTRIBUTE = re.compile(r"^([+~-])?\s*(\w+)\s*=\s*(.*)")

_BLOCK_SIGIL_ACTIONS = {
    "+": ResourceAction.CREATE,
    "-": ResourceAction.DELETE,
    "-/+": ResourceAction.CREATE,
    "+/-": ResourceAction.CREATE,
}


@dataclass
class _ParseState:
    """Mutable accumulators for a single :meth:`TextPlanParser.parse` call."""

    in_plan_section: bool = False
    current: Optional[ResourceChange] = None
    block_claimed: bool = False
    collecting_dependencies: bool = False
    dependencies: List[str] = field(default_factory=list)
    before: Dict[str, Any] = field(default_factory=dict)
    after: Dict[str, Any] = field(default_factory=dict)
    finished: List[ResourceChange] = field(default_factory=list)

    def open_resource(self, address: str, resource_type: str, name: str, action: ResourceAction) -> None:
        self.finalize()
        self.current = ResourceChange(address=address, type=resource_type, name=name, action=action)
        self.collecting_dependencies = False
        self.dependencies = []
        self.before = {}
        self.after = {}

    def finalize(self) -> None:
        if self.current is None:
            return

        resource = self.current
        details: Optional[ChangeDetails] = None
        if self.before or self.after:
            before: Optional[Dict[str, Any]] = dict(self.before)
            after: Optional[Dict[str, Any]] = dict(self.after)
            if resource.action is ResourceAction.CREATE and not self.before:
                before = None
            if resource.action is ResourceAction.DELETE and not self.after:
                after = None
            details = ChangeDetails(before=before, after=after, actions=(resource.action.value,))

        self.finished.append(
            ResourceChange(
                address=resource.address,
                type=resource.type,
                name=resource.name,
                action=resource.action,
                change_details=details,
                dependencies=tuple(self.dependencies) if self.dependencies else None,
            )
        )
        self.current = None


class TextPlanParser:
    """Best-effort recognizer for resource blocks in plan text output.

    Only lines after the ``Terraform will perform the following actions:``
    marker are considered. Lines that match none of the known patterns are
    skipped silently.
    """

    def parse(self, text: str) -> ParsedPlan:
        state = _ParseState()

        for raw_line in text.splitlines():
            self._consume(state, raw_line.strip())

        state.finalize()
        if not state.in_plan_section:
            logger.debug("Plan text does not contain the %r marker", PLAN_MARKER)
        return build_plan(state.finished)

    # ------------------------------------------------------------------
    def _consume(self, state: _ParseState, line: str) -> None:
        if not line:
            state.collecting_dependencies = False
            return

        if _PLAN_START.search(line):
            state.in_plan_section = True
            return

        if not state.in_plan_section:
            return

        header = _RESOURCE_HEADER.match(line)
        if header:
            address = header.group(1).strip()
            action = classify_action_text(header.group(2)) or ResourceAction.UPDATE
            state.open_resource(
                address, extract_resource_type(address), extract_resource_name(address), action
            )
            state.block_claimed = True
            return

        block = _RESOURCE_BLOCK.match(line)
        if block:
            if state.block_claimed:
                state.block_claimed = False
                return
            sigil, resource_type, name = block.groups()
            action = _BLOCK_SIGIL_ACTIONS.get(sigil or "", ResourceAction.UPDATE)
            state.open_resource(f"{resource_type}.{name}", resource_type, name, action)
            return

        if not line.startswith("#"):
            state.block_claimed = False

        if state.current is not None and _DEPENDS_ON.match(line):
            state.collecting_dependencies = True
            return

        if state.collecting_dependencies:
            item = _DEPENDENCY_ITEM.match(line)
            if item:
                state.dependencies.append(item.group(1).strip())
                return
            state.collecting_dependencies = False

        if state.current is not None:
            self._consume_attribute(state, line)

    def _consume_attribute(self, state: _ParseState, line: str) -> None:
        match = _ATTRIBUTE.match(line)
        if not match:
            return

        sigil, name, raw_value = match.groups()
        raw_value = strip_trailing_comment(raw_value)
        changed = split_changed_value(raw_value)
        if changed is not None:
            old_value = coerce_attribute_value(changed[0])
            new_value = coerce_attribute_value(changed[1])
        else:
            old_value = new_value = coerce_attribute_value(raw_value)

        if sigil == "-":
            state.before[name] = old_value
        elif sigil == "+":
            state.after[name] = new_value
        else:
            state.before[name] = old_value
            state.after[name] = new_value


__all__ = ["PLAN_MARKER", "TextPlanParser"]
