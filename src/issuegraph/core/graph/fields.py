"""
Custom field extraction.

A field name is either one of the synthetic names read from the structured
issue attributes (``summary``, ``description``, ``key``, ``id``,
``issuetype.name``) or a provider field id looked up in the issue's field
bag. Absent and null fields read as None. A present value of the wrong
shape raises FieldExtractionError.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from issuegraph.core.exceptions import FieldExtractionError

if TYPE_CHECKING:
    from issuegraph.core.config import CustomFieldsConfig

_STRING = TypeAdapter(str)
_NUMBER = TypeAdapter(float)
_DATETIME = TypeAdapter(datetime)

# calendar date plus time of day; rules out numeric strings read as epoch seconds
_TIMESTAMP_SHAPE = re.compile(r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")


@dataclass(frozen=True)
class CustomField:
    name: str

    def raw_value(self, issue: Mapping[str, Any]) -> Any:
        fields: Mapping[str, Any] = issue.get("fields") or {}
        match self.name:
            case "summary" | "description":
                return fields.get(self.name)
            case "key" | "id":
                return issue.get(self.name)
            case "issuetype.name":
                return (fields.get("issuetype") or {}).get("name")
            case _:
                return fields.get(self.name)

    def _validate(self, adapter: TypeAdapter[Any], value: Any, issue: Mapping[str, Any]) -> Any:
        try:
            return adapter.validate_python(value, strict=adapter is _STRING)
        except ValidationError as exc:
            detail = "; ".join(err["msg"] for err in exc.errors())
            raise FieldExtractionError(self.name, str(issue.get("key", "")), detail) from exc

    def string_of(self, issue: Mapping[str, Any]) -> str | None:
        value = self.raw_value(issue)
        if value is None:
            return None
        return self._validate(_STRING, value, issue)

    def number_of(self, issue: Mapping[str, Any]) -> float | None:
        value = self.raw_value(issue)
        if value is None:
            return None
        return self._validate(_NUMBER, value, issue)

    def date_of(self, issue: Mapping[str, Any]) -> datetime | None:
        """Read a timestamp; a bare ``YYYY-MM-DD`` becomes midnight UTC."""
        value = self.string_of(issue)
        if value is None:
            return None
        try:
            day = date.fromisoformat(value)
        except ValueError:
            pass
        else:
            if len(value) == 10:
                return datetime(day.year, day.month, day.day, tzinfo=UTC)
        if not _TIMESTAMP_SHAPE.match(value):
            raise FieldExtractionError(
                self.name, str(issue.get("key", "")), f"not a date or timestamp: {value!r}"
            )
        parsed: datetime = self._validate(_DATETIME, value, issue)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed


def _field(name: str | None) -> CustomField | None:
    return CustomField(name) if name else None


@dataclass(frozen=True)
class IssueCustomFields:
    """The configured custom fields of one issue, already extracted."""

    reason: str | None = None
    epic_link: str | None = None
    epic_name: str | None = None
    planned_start: datetime | None = None
    planned_end: datetime | None = None
    story_points: float | None = None

    @classmethod
    def of_issue(
        cls, config: CustomFieldsConfig | None, issue: Mapping[str, Any]
    ) -> IssueCustomFields:
        if config is None:
            return cls()

        def string(name: str | None) -> str | None:
            f = _field(name)
            return f.string_of(issue) if f else None

        def when(name: str | None) -> datetime | None:
            f = _field(name)
            return f.date_of(issue) if f else None

        points = _field(config.story_points)
        return cls(
            reason=string(config.reason),
            epic_link=string(config.epic_link) or None,
            epic_name=string(config.epic_name),
            planned_start=when(config.planned_start),
            planned_end=when(config.planned_end),
            story_points=points.number_of(issue) if points else None,
        )

    def plan(self) -> str:
        """``YYYY-MM-DD - YYYY-MM-DD`` with ``?`` for a missing bound, or ``""``."""
        if self.planned_start is None and self.planned_end is None:
            return ""

        def fmt(value: datetime | None) -> str:
            return value.strftime("%Y-%m-%d") if value else "?"

        return f"{fmt(self.planned_start)} - {fmt(self.planned_end)}"
