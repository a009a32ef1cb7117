"""Normalize Terraform plan JSON and text output into uniform resource changes."""

from .models import ChangeDetails, ParsedPlan, PlanSummary, ResourceAction, ResourceChange
from .parser import ParseError, PlanFormat, PlanParser, detect_format, parse_plan

__all__ = [
    "ChangeDetails",
    "ParseError",
    "ParsedPlan",
    "PlanFormat",
    "PlanParser",
    "PlanSummary",
    "ResourceAction",
    "ResourceChange",
    "detect_format",
    "parse_plan",
]
