"""Normalization of Terraform plan JSON and text output into resource changes."""

from .addresses import extract_resource_name, extract_resource_type, strip_action_suffix
from .json_extractor import AssistedNormalizer, JsonPlanExtractor
from .summary import build_plan, summarize
from .text_parser import PLAN_MARKER, TextPlanParser
from .values import coerce_attribute_value, split_changed_value, strip_trailing_comment

__all__ = [
    "AssistedNormalizer",
    "JsonPlanExtractor",
    "PLAN_MARKER",
    "TextPlanParser",
    "build_plan",
    "coerce_attribute_value",
    "extract_resource_name",
    "extract_resource_type",
    "split_changed_value",
    "strip_action_suffix",
    "strip_trailing_comment",
    "summarize",
]
