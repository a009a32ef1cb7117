"""Resource models produced by the plan parsers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ResourceAction(str, Enum):
    """Enumeration of the single action attributed to a Terraform resource."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class ChangeDetails:
    """Before/after attribute values reported for a resource change."""

    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    actions: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "before": self.before,
            "after": self.after,
            "actions": list(self.actions),
        }


@dataclass(frozen=True, slots=True)
class ResourceChange:
    """Normalized representation of one resource touched by a plan."""

    address: str
    type: str
    name: str
    action: ResourceAction
    change_details: Optional[ChangeDetails] = None
    dependencies: Optional[Tuple[str, ...]] = None

    @property
    def has_change_details(self) -> bool:
        """Return ``True`` when before/after values were recovered."""

        return self.change_details is not None

    @property
    def module_path(self) -> List[str]:
        """Module names the resource is nested under, outermost first."""

        segments = self.address.split(".")
        modules: List[str] = []
        index = 0
        while index + 1 < len(segments) and segments[index] == "module":
            modules.append(segments[index + 1].split("[", 1)[0])
            index += 2
        return modules

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "address": self.address,
            "type": self.type,
            "name": self.name,
            "action": self.action.value,
        }
        if self.change_details is not None:
            payload["changeDetails"] = self.change_details.to_dict()
        if self.dependencies is not None:
            payload["dependencies"] = list(self.dependencies)
        return payload
