from __future__ import annotations

from pathlib import Path

from plan_normalizer.models import ResourceAction
from plan_normalizer.normalization import PLAN_MARKER, TextPlanParser

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


def parse(text: str):
    return TextPlanParser().parse(text)


def test_single_created_resource() -> None:
    plan = parse(
        "\n".join(
            [
                PLAN_MARKER,
                "",
                "  # aws_s3_bucket.example will be created",
                '      + bucket = "my-example-bucket"',
            ]
        )
    )

    assert len(plan.resource_changes) == 1
    resource = plan.resource_changes[0]
    assert resource.address == "aws_s3_bucket.example"
    assert resource.type == "aws_s3_bucket"
    assert resource.name == "example"
    assert resource.action is ResourceAction.CREATE
    assert resource.change_details.after["bucket"] == "my-example-bucket"
    assert resource.change_details.before is None
    assert resource.dependencies is None


def test_sample_plan_text() -> None:
    plan = parse((FIXTURES / "sample-plan.txt").read_text(encoding="utf-8"))

    assert [(resource.address, resource.action) for resource in plan.resource_changes] == [
        ("aws_s3_bucket.example", ResourceAction.CREATE),
        ("aws_iam_role.example", ResourceAction.CREATE),
        ("aws_rds_cluster.example", ResourceAction.UPDATE),
        ("aws_db_instance.production", ResourceAction.DELETE),
    ]
    assert (plan.summary.create, plan.summary.update, plan.summary.delete) == (2, 1, 1)

    bucket, role, cluster, database = plan.resource_changes
    assert bucket.change_details.after == {
        "bucket": "my-example-bucket",
        "acl": "private",
        "enabled": True,
        "tags": "{",
    }
    assert role.change_details.after["max_session_duration"] == 3600
    assert database.change_details.before["multi_az"] is True
    assert database.change_details.before["allocated_storage"] == 20
    assert database.change_details.after is None
    assert cluster.dependencies == ("aws_iam_role.example",)
    assert bucket.dependencies is None


def test_update_with_unchanged_and_changed_attributes() -> None:
    plan = parse((FIXTURES / "sample-plan.txt").read_text(encoding="utf-8"))
    cluster = plan.resource_changes[2]
    before = cluster.change_details.before
    after = cluster.change_details.after

    assert before["engine"] == after["engine"] == "aurora"
    assert before["skip_final_snapshot"] is False and after["skip_final_snapshot"] is False
    assert before["engine_version"] == "5.6.10a"
    assert after["engine_version"] == "5.7.12"
    assert (before["backup_retention_period"], after["backup_retention_period"]) == (5, 7)
    assert cluster.change_details.actions == ("update",)


def test_lines_before_marker_are_ignored() -> None:
    plan = parse(
        "\n".join(
            [
                "# aws_instance.early will be created",
                '+ ami = "ami-123"',
                PLAN_MARKER,
                "# aws_instance.late will be destroyed",
            ]
        )
    )

    assert [resource.address for resource in plan.resource_changes] == ["aws_instance.late"]
    assert plan.resource_changes[0].action is ResourceAction.DELETE


def test_text_without_marker_yields_empty_plan() -> None:
    plan = parse('# aws_instance.web will be created\n+ resource "aws_instance" "web" {')

    assert plan.is_empty


def test_empty_input_yields_empty_plan() -> None:
    plan = parse("")

    assert plan.is_empty
    assert plan.summary.total == 0


def test_block_openers_without_headers_open_resources() -> None:
    plan = parse(
        "\n".join(
            [
                PLAN_MARKER,
                '  + resource "aws_eip" "nat" {',
                '      + domain = "vpc"',
                "    }",
                '  - resource "aws_eip" "old" {',
                '      - domain = "vpc"',
                "    }",
                '  ~ resource "aws_eip" "kept" {',
                "    }",
                '-/+ resource "aws_instance" "web" {',
                "    }",
            ]
        )
    )

    assert [(resource.address, resource.action) for resource in plan.resource_changes] == [
        ("aws_eip.nat", ResourceAction.CREATE),
        ("aws_eip.old", ResourceAction.DELETE),
        ("aws_eip.kept", ResourceAction.UPDATE),
        ("aws_instance.web", ResourceAction.CREATE),
    ]
    assert plan.resource_changes[0].change_details.after == {"domain": "vpc"}
    assert plan.resource_changes[2].change_details is None


def test_header_claims_following_block_despite_comments() -> None:
    plan = parse(
        "\n".join(
            [
                PLAN_MARKER,
                "  # aws_instance.old will be destroyed",
                "  # (because aws_instance.old is not in configuration)",
                '  - resource "aws_instance" "old" {',
                '      - ami = "ami-1"',
                "    }",
            ]
        )
    )

    assert len(plan.resource_changes) == 1
    assert plan.resource_changes[0].action is ResourceAction.DELETE


def test_module_header_address() -> None:
    plan = parse(
        "\n".join(
            [
                PLAN_MARKER,
                "  # module.network.aws_subnet.private will be created",
                '  + resource "aws_subnet" "private" {',
                '      + cidr_block = "10.0.1.0/24"',
                "    }",
            ]
        )
    )

    resource = plan.resource_changes[0]
    assert resource.address == "module.network.aws_subnet.private"
    assert resource.type == "aws_subnet"
    assert resource.name == "private"


def test_dependency_collection_ends_at_non_dependency_line() -> None:
    plan = parse(
        "\n".join(
            [
                PLAN_MARKER,
                "  # aws_lambda_function.api will be updated in-place",
                '  ~ resource "aws_lambda_function" "api" {',
                "      # depends on:",
                "      #   - aws_iam_role.lambda",
                "      #   - aws_s3_bucket.code",
                "        memory_size = 128",
                "      # depends on:",
                "      #   - aws_sqs_queue.events",
                "",
                "      #   - aws_not.collected",
                "    }",
            ]
        )
    )

    resource = plan.resource_changes[0]
    assert resource.dependencies == (
        "aws_iam_role.lambda",
        "aws_s3_bucket.code",
        "aws_sqs_queue.events",
    )
    assert resource.change_details.before == {"memory_size": 128}
    assert resource.change_details.after == {"memory_size": 128}


def test_removed_and_added_attribute_sides() -> None:
    plan = parse(
        "\n".join(
            [
                PLAN_MARKER,
                "  # aws_security_group.web will be updated in-place",
                '  ~ resource "aws_security_group" "web" {',
                '      - description = "old" -> null',
                '      + name_prefix = "web-"',
                "      ~ tags = {",
                "    }",
            ]
        )
    )

    details = plan.resource_changes[0].change_details
    assert details.before == {"description": "old", "tags": "{"}
    assert details.after == {"name_prefix": "web-", "tags": "{"}


def test_unknown_verb_headers_are_not_resources() -> None:
    plan = parse(
        "\n".join(
            [
                PLAN_MARKER,
                "  # aws_instance.web must be replaced",
                '-/+ resource "aws_instance" "web" {',
                '      ~ ami = "ami-1" -> "ami-2"',
                "    }",
            ]
        )
    )

    resource = plan.resource_changes[0]
    assert resource.action is ResourceAction.CREATE
    assert resource.change_details.before == {"ami": "ami-1"}
    assert resource.change_details.after == {"ami": "ami-2"}


def test_parsing_twice_is_deterministic() -> None:
    text = (FIXTURES / "sample-plan.txt").read_text(encoding="utf-8")

    assert parse(text) == parse(text)


def test_replacement_note_is_dropped_from_changed_value() -> None:
    plan = parse(
        "\n".join(
            [
                PLAN_MARKER,
                "  # aws_instance.web must be replaced",
                '-/+ resource "aws_instance" "web" {',
                '      ~ ami           = "ami-1" -> "ami-2" # forces replacement',
                '      ~ subnet_id     = "subnet-a" -> (known after apply) # forces replacement',
                '        tags          = "#team" # not a change',
                "    }",
            ]
        )
    )

    details = plan.resource_changes[0].change_details
    assert details.before["ami"] == "ami-1"
    assert details.after["ami"] == "ami-2"
    assert details.after["subnet_id"] == "(known after apply)"
    assert details.before["tags"] == details.after["tags"] == "#team"
