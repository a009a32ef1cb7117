"""Entry point dispatching raw plan input to the JSON or text parser."""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any

from .models import ParsedPlan
from .normalization import JsonPlanExtractor, TextPlanParser

logger = logging.getLogger(__name__)


class ParseError(RuntimeError):
    """Raised when plan input cannot be turned into a :class:`ParsedPlan`."""


class PlanFormat(str, Enum):
    """Declared format of raw plan input."""

    JSON = "json"
    TEXT = "text"


class PlanParser:
    """Parse raw plan input of a declared format into a :class:`ParsedPlan`."""

    def __init__(
        self,
        *,
        json_extractor: JsonPlanExtractor | None = None,
        text_parser: TextPlanParser | None = None,
    ) -> None:
        self.json_extractor = json_extractor or JsonPlanExtractor()
        self.text_parser = text_parser or TextPlanParser()

    def parse(self, text: str, declared_format: str | PlanFormat) -> ParsedPlan:
        """Parse ``text``; every failure surfaces as :class:`ParseError`."""

        try:
            plan_format = PlanFormat(declared_format)
        except ValueError as exc:
            raise ParseError(f"Unsupported plan format: {declared_format!r}") from exc

        try:
            if plan_format is PlanFormat.JSON:
                return self._parse_json(text)
            return self._parse_text(text)
        except ParseError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise ParseError(f"Failed to parse Terraform plan: {exc}") from exc

    # ------------------------------------------------------------------
    def _parse_json(self, text: str) -> ParsedPlan:
        try:
            document: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Failed to parse Terraform plan: invalid JSON ({exc})") from exc

        return self.json_extractor.extract(document)

    def _parse_text(self, text: str) -> ParsedPlan:
        if text.strip().startswith("{"):
            try:
                return self._parse_json(text)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Input labelled as text is not a JSON plan, parsing as text: %s", exc)

        return self.text_parser.parse(text)


def detect_format(text: str, filename: str | Path | None = None) -> PlanFormat:
    """Guess the format of plan input that arrived without a declared format."""

    if filename is not None and Path(filename).suffix.lower() == ".json":
        return PlanFormat.JSON
    if text.lstrip().startswith("{"):
        return PlanFormat.JSON
    return PlanFormat.TEXT


_DEFAULT_PARSER = PlanParser()


def parse_plan(text: str, declared_format: str | PlanFormat) -> ParsedPlan:
    """Parse ``text`` using the default :class:`PlanParser`."""

    return _DEFAULT_PARSER.parse(text, declared_format)


__all__ = ["ParseError", "PlanFormat", "PlanParser", "detect_format", "parse_plan"]
