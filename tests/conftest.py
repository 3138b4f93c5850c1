"""Shared fixtures: an in-memory tracker standing in for a remote instance."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from typing import Any

import pytest
import structlog

from issuegraph.core.config import CustomFieldsConfig
from issuegraph.core.exceptions import FetchError
from issuegraph.core.graph.models import EntityKind, IssueRecord, TrackerInstance

EPIC_FIELD = "customfield_10008"


class FakeTracker:
    """
    In-memory IssueSource.

    ``add()`` registers an issue payload; ``fetch_batch`` records every call
    so tests can count round-trips. Keys in ``failing`` make any batch that
    contains them raise FetchError.
    """

    def __init__(
        self,
        ref: str = "https://jira.example.com",
        relations_map: Sequence[tuple[str, str]] = (),
    ) -> None:
        self.issues: dict[str, dict[str, Any]] = {}
        self.batches: list[list[str]] = []
        self.searches: list[str] = []
        self.search_results: dict[str, list[str]] = {}
        self.failing: set[str] = set()
        self.instance = TrackerInstance(
            ref=ref,
            source=self,
            custom_fields=CustomFieldsConfig(epic_link=EPIC_FIELD),
            relations_map=tuple(relations_map),
        )

    def add(
        self,
        key: str,
        *,
        summary: str = "",
        links: Sequence[tuple[str, str, str]] = (),
        epic: str | None = None,
        **fields: Any,
    ) -> dict[str, Any]:
        """Register an issue; *links* are (direction, inward wording, other key)."""
        issuelinks = []
        for direction, term, other in links:
            side = "inwardIssue" if direction == "inward" else "outwardIssue"
            issuelinks.append({"type": {"name": term, "inward": term}, side: {"key": other}})
        raw = {
            "id": str(len(self.issues) + 1),
            "key": key,
            "fields": {
                "summary": summary or f"Summary of {key}",
                "status": {"name": "Open", "statusCategory": {"key": "new"}},
                "issuelinks": issuelinks,
                EPIC_FIELD: epic,
                **fields,
            },
        }
        self.issues[key] = raw
        return raw

    def record(self, key: str, kind: EntityKind = EntityKind.REPORT_MEMBER) -> IssueRecord:
        return IssueRecord.from_raw(self.instance, self.issues[key], kind)

    # IssueSource -------------------------------------------------------

    async def search_all(self, query: str) -> list[dict[str, Any]]:
        self.searches.append(query)
        if query in self.failing:
            raise FetchError(f"search {query!r} failed", instance_ref=self.instance.ref)
        return [self.issues[key] for key in self.search_results.get(query, [])]

    async def fetch_batch(self, keys: Sequence[str]) -> list[dict[str, Any]]:
        self.batches.append(list(keys))
        if self.failing & set(keys):
            raise FetchError("batch failed", instance_ref=self.instance.ref, keys=keys)
        return [self.issues[key] for key in keys if key in self.issues]

    async def get_issue(self, key: str) -> dict[str, Any]:
        return self.issues[key]

    async def close(self) -> None:
        pass


@pytest.fixture()
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture()
def make_tracker() -> Callable[..., FakeTracker]:
    return FakeTracker


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()
