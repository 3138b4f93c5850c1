"""
Integration fixtures: a fake Jira REST backend served through httpx.MockTransport.

Every JiraClient built from configuration is routed to ``FakeJira`` by host,
so reports run through the real config loader, registry, client and graph
engine without network access.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import httpx
import pytest

from issuegraph.trackers.jira import JiraClient

MAIN = "https://jira.example.com"
PARTNER = "https://partner.example.org"
EPIC_FIELD = "customfield_10008"

_KEY_RE = re.compile(r'key = "([^"]+)"')

CONFIG_TOML = f"""
[instances.main]
base_url = "{MAIN}"
access = {{ secret = {{ value = "tok-main" }} }}

[instances.main.custom_fields]
epic_link = "{EPIC_FIELD}"

[instances.partner]
base_url = "{PARTNER}"
access = {{ kind = "jsessionid", secret = {{ value = "sess-partner" }} }}

[reports.roadmap]
dependencies_deepness = 1

[[reports.roadmap.queries]]
instance = "main"
jql = "project = ABC"

[[reports.roadmap.foreign_relations]]
from = {{ instance = "main", key = "ABC-1" }}
to = {{ instance = "partner", key = "XYZ-9" }}
kind = "depends on"

[reports.broken]

[[reports.broken.queries]]
instance = "main"
jql = "project = BROKEN"
"""


class FakeJira:
    """
    Issues per host; search results per JQL; keys whose batches fail with 500.

    Key searches without ``validateQuery`` answer 400 when any key is unknown,
    as Jira does under strict validation.
    """

    def __init__(self) -> None:
        self.issues: dict[str, dict[str, dict[str, Any]]] = {}
        self.queries: dict[str, list[str]] = {}
        self.broken_keys: set[str] = set()
        self.requests: list[httpx.Request] = []

    def add(
        self,
        base_url: str,
        key: str,
        *,
        summary: str = "",
        links: list[tuple[str, str, str]] | None = None,
        epic: str | None = None,
    ) -> None:
        issuelinks = []
        for direction, term, other in links or []:
            side = "inwardIssue" if direction == "inward" else "outwardIssue"
            issuelinks.append(
                {
                    "type": {"name": term.title(), "inward": term, "outward": "?"},
                    side: {"key": other},
                }
            )
        self.issues.setdefault(httpx.URL(base_url).host, {})[key] = {
            "id": str(sum(map(len, self.issues.values())) + 1),
            "key": key,
            "fields": {
                "summary": summary or f"Summary of {key}",
                "status": {"name": "In Progress", "statusCategory": {"key": "indeterminate"}},
                "assignee": {"displayName": "Ada Lovelace"},
                "issuelinks": issuelinks,
                EPIC_FIELD: epic,
            },
        }

    def batches(self, host: str) -> list[list[str]]:
        return [
            _KEY_RE.findall(r.url.params["jql"])
            for r in self.requests
            if r.url.host == host and r.url.params.get("jql", "").startswith("key = ")
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        issues = self.issues.get(request.url.host, {})
        path = request.url.path

        if path.startswith("/rest/api/2/issue/"):
            key = path.rsplit("/", 1)[-1]
            if key not in issues:
                return httpx.Response(404, json={"errorMessages": ["Issue does not exist"]})
            return httpx.Response(200, json=issues[key])

        if path == "/rest/api/2/search":
            jql = request.url.params["jql"]
            if jql.startswith("key = "):
                keys = _KEY_RE.findall(jql)
                if self.broken_keys & set(keys):
                    return httpx.Response(500, text="Internal Server Error")
                unknown = [k for k in keys if k not in issues]
                if unknown and request.url.params.get("validateQuery", "strict") == "strict":
                    # strict validation rejects the whole query for one unknown key
                    return httpx.Response(
                        400,
                        json={"errorMessages": [f"Issue '{unknown[0]}' does not exist"]},
                    )
            elif jql in self.queries:
                keys = self.queries[jql]
            else:
                return httpx.Response(400, json={"errorMessages": [f"Bad JQL: {jql}"]})
            found = [issues[k] for k in keys if k in issues]
            start = int(request.url.params["startAt"])
            size = int(request.url.params["maxResults"])
            return httpx.Response(
                200,
                json={
                    "startAt": start,
                    "maxResults": size,
                    "total": len(found),
                    "issues": found[start : start + size],
                },
            )

        return httpx.Response(404)


@pytest.fixture()
def fake_jira(monkeypatch: pytest.MonkeyPatch) -> FakeJira:
    """A populated FakeJira that every config-built JiraClient talks to."""
    jira = FakeJira()
    jira.add(MAIN, "ABC-100", summary="Payments")
    jira.add(
        MAIN,
        "ABC-1",
        summary="Checkout",
        links=[("outward", "is blocked by", "ABC-2")],
        epic="ABC-100",
    )
    jira.add(MAIN, "ABC-2", summary="Card vault", links=[("inward", "depends on", "ABC-3")])
    jira.add(MAIN, "ABC-3", summary="Key rotation")
    jira.add(PARTNER, "XYZ-9", summary="Partner settlement API")
    jira.queries["project = ABC"] = ["ABC-1", "ABC-2"]

    transport = httpx.MockTransport(jira.handler)

    def from_config(cls: type[JiraClient], config: Any) -> JiraClient:
        return cls(
            config.base_url, config.access, timeout=config.timeout_seconds, transport=transport
        )

    monkeypatch.setattr(JiraClient, "from_config", classmethod(from_config))
    return jira


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    p = tmp_path / "config.toml"
    p.write_text(CONFIG_TOML)
    return p
