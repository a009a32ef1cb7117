"""Data models for normalized Terraform plans."""

from .plan import ParsedPlan, PlanSummary
from .resource import ChangeDetails, ResourceAction, ResourceChange

__all__ = [
    "ChangeDetails",
    "ParsedPlan",
    "PlanSummary",
    "ResourceAction",
    "ResourceChange",
]
