"""
Jira tracker client — REST API v2 via httpx.

Endpoints used:
  GET /rest/api/2/issue/{key}   — single issue
  GET /rest/api/2/search        — JQL search, paged with startAt/maxResults

Batched fetch is a search restricted by an OR of exact-key predicates, so
N missing issues on one instance cost a few paged queries instead of N calls.
Keys are sent in chunks of BATCH_KEYS_PER_QUERY to keep the request URL
within server limits. Batch queries use ``validateQuery=warn``: with strict
validation Jira rejects the whole query when one key is deleted or hidden,
with ``warn`` the key is simply absent from the result.

Every call carries the instance's fixed timeout. Transport errors, timeouts,
non-2xx statuses and undecodable bodies surface as FetchError.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from issuegraph.core.constants import (
    BATCH_KEYS_PER_QUERY,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    SEARCH_PAGE_SIZE,
)
from issuegraph.core.exceptions import FetchError
from issuegraph.core.secrets import auth_headers
from issuegraph.trackers.base import RawIssue, TrackerRegistry

if TYPE_CHECKING:
    from issuegraph.core.config import AccessConfig, InstanceConfig

logger = structlog.get_logger()


def key_predicate(keys: Sequence[str]) -> str:
    """``key = "A-1" OR key = "B-2"``"""
    return " OR ".join(f'key = "{key}"' for key in keys)


@TrackerRegistry.register("jira")
class JiraClient:
    """Jira REST v2 client bound to one instance."""

    def __init__(
        self,
        base_url: str,
        access: AccessConfig | None = None,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        page_size: int = SEARCH_PAGE_SIZE,
        batch_size: int = BATCH_KEYS_PER_QUERY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._access = access
        self._timeout = timeout
        self._page_size = page_size
        self._batch_size = batch_size
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: InstanceConfig) -> JiraClient:
        return cls(config.base_url, config.access, timeout=config.timeout_seconds)

    async def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self._access is not None:
            headers.update(await auth_headers(self._access))
        return headers

    async def _ensure_client(self) -> httpx.AsyncClient:
        # concurrent first calls must resolve the secret only once
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.base_url,
                    headers=await self._headers(),
                    timeout=self._timeout,
                    transport=self._transport,
                )
        return self._client

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        client = await self._ensure_client()
        try:
            resp = await client.get(path, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as exc:
            raise FetchError(
                f"GET {self.base_url}{path} failed: {exc}", instance_ref=self.base_url
            ) from exc
        except ValueError as exc:
            raise FetchError(
                f"GET {self.base_url}{path} returned invalid JSON: {exc}",
                instance_ref=self.base_url,
            ) from exc

    # ------------------------------------------------------------------
    # IssueSource
    # ------------------------------------------------------------------

    async def get_issue(self, key: str) -> RawIssue:
        logger.info("issue_fetch", instance=self.base_url, key=key)
        data = await self._get(f"/rest/api/2/issue/{key}")
        if not isinstance(data, dict):
            raise FetchError(f"Unexpected issue payload for {key}", instance_ref=self.base_url)
        return data

    async def search(
        self,
        jql: str,
        start_at: int = 0,
        max_results: int | None = None,
        validate_query: str | None = None,
    ) -> Any:
        params: dict[str, Any] = {
            "jql": jql,
            "startAt": start_at,
            "maxResults": max_results or self._page_size,
        }
        if validate_query is not None:
            params["validateQuery"] = validate_query
        return await self._get("/rest/api/2/search", params)

    async def search_all(self, query: str, *, validate_query: str | None = None) -> list[RawIssue]:
        jql = " ".join(query.split("\n")).strip()
        results: list[RawIssue] = []
        while True:
            page = await self.search(jql, start_at=len(results), validate_query=validate_query)
            issues = page.get("issues") if isinstance(page, dict) else None
            if not issues:
                break
            results.extend(issues)
            logger.debug(
                "search_page_fetched",
                instance=self.base_url,
                issues=len(issues),
                total=len(results),
            )
            per_page = page.get("maxResults")
            if per_page is not None and len(issues) < per_page:
                break
        return results

    async def fetch_batch(self, keys: Sequence[str]) -> list[RawIssue]:
        keys = list(keys)
        results: list[RawIssue] = []
        for start in range(0, len(keys), self._batch_size):
            chunk = keys[start : start + self._batch_size]
            try:
                results.extend(await self.search_all(key_predicate(chunk), validate_query="warn"))
            except FetchError as exc:
                raise FetchError(str(exc), instance_ref=self.base_url, keys=keys) from exc
        return results

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
