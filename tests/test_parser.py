from __future__ import annotations

import json
from pathlib import Path

import pytest

from plan_normalizer import ParseError, PlanFormat, PlanParser, ResourceAction, detect_format, parse_plan
from plan_normalizer.normalization import JsonPlanExtractor

FIXTURES = Path(__file__).resolve().parent / "fixtures"
FIXTURE_FORMATS = [
    ("sample-plan.json", "json"),
    ("legacy-state-plan.json", "json"),
    ("nested-structure.json", "json"),
    ("sample-plan.txt", "text"),
    ("sample-plan.json", "text"),
]


def read_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


@pytest.mark.parametrize(("fixture_name", "declared_format"), FIXTURE_FORMATS)
def test_summary_matches_resource_actions(fixture_name: str, declared_format: str) -> None:
    plan = parse_plan(read_fixture(fixture_name), declared_format)

    summary = plan.summary
    assert summary.create + summary.update + summary.delete == len(plan.resource_changes)
    for action in ResourceAction:
        expected = sum(1 for resource in plan.resource_changes if resource.action is action)
        assert getattr(summary, action.value) == expected
    assert all(isinstance(resource.action, ResourceAction) for resource in plan.resource_changes)


@pytest.mark.parametrize(("fixture_name", "declared_format"), FIXTURE_FORMATS)
def test_parsing_is_idempotent(fixture_name: str, declared_format: str) -> None:
    text = read_fixture(fixture_name)

    assert parse_plan(text, declared_format) == parse_plan(text, declared_format)
    assert parse_plan(text, declared_format).to_dict() == parse_plan(text, declared_format).to_dict()


def test_empty_text_is_an_empty_plan() -> None:
    plan = parse_plan("", "text")

    assert plan.resource_changes == ()
    assert plan.summary.to_dict() == {"create": 0, "update": 0, "delete": 0}


def test_empty_json_raises_parse_error() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_plan("", "json")

    assert "invalid JSON" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)


def test_invalid_json_raises_parse_error() -> None:
    with pytest.raises(ParseError):
        parse_plan('{"resource_changes": [', PlanFormat.JSON)


def test_json_labelled_as_text_uses_json_parser() -> None:
    text = read_fixture("sample-plan.json")

    assert parse_plan(text, "text") == parse_plan(text, "json")


def test_broken_json_labelled_as_text_falls_back_to_text() -> None:
    text = "{ not json\nTerraform will perform the following actions:\n# aws_vpc.main will be created\n"

    plan = parse_plan(text, "text")

    assert [resource.address for resource in plan.resource_changes] == ["aws_vpc.main"]


def test_unsupported_format_raises_parse_error() -> None:
    with pytest.raises(ParseError, match="Unsupported plan format"):
        parse_plan("{}", "yaml")


def test_extractor_failures_are_wrapped() -> None:
    class ExplodingExtractor(JsonPlanExtractor):
        def extract(self, document):
            raise KeyError("resource_changes")

    parser = PlanParser(json_extractor=ExplodingExtractor())

    with pytest.raises(ParseError) as excinfo:
        parser.parse("{}", "json")

    assert str(excinfo.value).startswith("Failed to parse Terraform plan:")
    assert "resource_changes" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, KeyError)


def test_extractor_failure_in_text_mode_falls_back_to_text() -> None:
    class ExplodingExtractor(JsonPlanExtractor):
        def extract(self, document):
            raise KeyError("resource_changes")

    parser = PlanParser(json_extractor=ExplodingExtractor())

    assert parser.parse("{}", "text").is_empty


def test_module_address_in_json_plan() -> None:
    document = {
        "resource_changes": [
            {
                "address": "module.network.aws_subnet.private",
                "change": {"actions": ["create"], "before": None, "after": {}},
            }
        ]
    }

    resource = parse_plan(json.dumps(document), "json").resource_changes[0]

    assert resource.type == "aws_subnet"
    assert resource.name == "private"


@pytest.mark.parametrize(
    ("text", "filename", "expected"),
    [
        ('{"resource_changes": []}', None, PlanFormat.JSON),
        ("  \n{", None, PlanFormat.JSON),
        ("Terraform will perform the following actions:", None, PlanFormat.TEXT),
        ("[]", "plan.JSON", PlanFormat.JSON),
        ("{}", "plan.txt", PlanFormat.JSON),
        ("", "plan.txt", PlanFormat.TEXT),
    ],
)
def test_detect_format(text: str, filename: str | None, expected: PlanFormat) -> None:
    assert detect_format(text, filename) is expected
