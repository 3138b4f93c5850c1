"""Unit tests for issuegraph.core.graph.fields — custom field extraction."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from issuegraph.core.config import CustomFieldsConfig
from issuegraph.core.exceptions import FieldExtractionError
from issuegraph.core.graph.fields import CustomField, IssueCustomFields

ISSUE = {
    "id": "10042",
    "key": "ABC-42",
    "fields": {
        "summary": "Ship the thing",
        "description": None,
        "issuetype": {"name": "Story"},
        "customfield_10008": "ABC-1",
        "customfield_10100": "2024-03-01",
        "customfield_10101": "2024-03-15T12:30:00Z",
        "customfield_10102": 5,
        "customfield_10103": {"value": "not a string"},
    },
}


class TestSyntheticNames:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("summary", "Ship the thing"),
            ("key", "ABC-42"),
            ("id", "10042"),
            ("issuetype.name", "Story"),
        ],
    )
    def test_structured_attributes(self, name: str, expected: str) -> None:
        assert CustomField(name).string_of(ISSUE) == expected

    def test_null_description_is_absent(self) -> None:
        assert CustomField("description").string_of(ISSUE) is None


class TestStringOf:
    def test_custom_field_value(self) -> None:
        assert CustomField("customfield_10008").string_of(ISSUE) == "ABC-1"

    def test_missing_field_is_absent(self) -> None:
        assert CustomField("customfield_99999").string_of(ISSUE) is None

    def test_number_is_type_mismatch(self) -> None:
        with pytest.raises(FieldExtractionError) as exc_info:
            CustomField("customfield_10102").string_of(ISSUE)
        assert exc_info.value.field_name == "customfield_10102"
        assert exc_info.value.issue_key == "ABC-42"

    def test_object_is_type_mismatch(self) -> None:
        with pytest.raises(FieldExtractionError):
            CustomField("customfield_10103").string_of(ISSUE)


class TestNumberOf:
    def test_number(self) -> None:
        assert CustomField("customfield_10102").number_of(ISSUE) == 5.0

    def test_missing(self) -> None:
        assert CustomField("customfield_99999").number_of(ISSUE) is None

    def test_object_is_type_mismatch(self) -> None:
        with pytest.raises(FieldExtractionError):
            CustomField("customfield_10103").number_of(ISSUE)


class TestDateOf:
    def test_bare_date_is_midnight_utc(self) -> None:
        value = CustomField("customfield_10100").date_of(ISSUE)
        assert value == datetime(2024, 3, 1, tzinfo=UTC)

    def test_full_timestamp(self) -> None:
        value = CustomField("customfield_10101").date_of(ISSUE)
        assert value == datetime(2024, 3, 15, 12, 30, tzinfo=UTC)

    def test_missing(self) -> None:
        assert CustomField("customfield_99999").date_of(ISSUE) is None

    def test_garbage_string_raises(self) -> None:
        issue = {"key": "ABC-1", "fields": {"customfield_1": "next tuesday"}}
        with pytest.raises(FieldExtractionError):
            CustomField("customfield_1").date_of(issue)

    @pytest.mark.parametrize("value", ["20240115", "1700000000", "2024-01-15T"])
    def test_numeric_strings_are_not_epoch_seconds(self, value: str) -> None:
        issue = {"key": "ABC-1", "fields": {"customfield_1": value}}
        with pytest.raises(FieldExtractionError, match="ABC-1"):
            CustomField("customfield_1").date_of(issue)

    def test_space_separated_timestamp(self) -> None:
        issue = {"key": "ABC-1", "fields": {"customfield_1": "2024-01-15 08:00:00"}}
        assert CustomField("customfield_1").date_of(issue) == datetime(2024, 1, 15, 8, tzinfo=UTC)


class TestIssueCustomFields:
    def test_extracts_configured_fields(self) -> None:
        config = CustomFieldsConfig(
            epic_link="customfield_10008",
            planned_start="customfield_10100",
            story_points="customfield_10102",
        )
        custom = IssueCustomFields.of_issue(config, ISSUE)
        assert custom.epic_link == "ABC-1"
        assert custom.planned_start == datetime(2024, 3, 1, tzinfo=UTC)
        assert custom.planned_end is None
        assert custom.story_points == 5.0
        assert custom.reason is None

    def test_no_config_means_nothing_extracted(self) -> None:
        assert IssueCustomFields.of_issue(None, ISSUE) == IssueCustomFields()

    def test_empty_epic_link_is_absent(self) -> None:
        config = CustomFieldsConfig(epic_link="customfield_1")
        issue = {"key": "ABC-1", "fields": {"customfield_1": ""}}
        assert IssueCustomFields.of_issue(config, issue).epic_link is None

    def test_type_mismatch_is_not_tolerated(self) -> None:
        config = CustomFieldsConfig(epic_link="customfield_10102")
        with pytest.raises(FieldExtractionError):
            IssueCustomFields.of_issue(config, ISSUE)

    def test_plan_formatting(self) -> None:
        custom = IssueCustomFields(planned_end=datetime(2024, 5, 2, tzinfo=UTC))
        assert custom.plan() == "? - 2024-05-02"
        assert IssueCustomFields().plan() == ""
