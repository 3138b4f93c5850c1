"""
EpicResolver — builds the epic index after graph assembly.

Every issue with a non-empty epic link is resolved on its own instance.
Epics already in the epic index or the issue store are reused; the rest are
fetched in one batched query per instance (tagged EPIC) and stored in both.
"""

from __future__ import annotations

from collections import defaultdict

import structlog

from issuegraph.core.graph.models import EntityKind, TrackerInstance
from issuegraph.core.graph.store import IssueStore

logger = structlog.get_logger()


class EpicResolver:
    def __init__(self, issues: IssueStore, *, ignore_fetch_errors: bool = False) -> None:
        self._issues = issues
        self._tolerant = ignore_fetch_errors

    async def resolve(self) -> IssueStore:
        epics = IssueStore()
        pending: dict[TrackerInstance, set[str]] = defaultdict(set)

        for issue in self._issues:
            epic_key = issue.custom.epic_link
            if not epic_key:
                continue
            epic_id = issue.instance.identity(epic_key)
            if epic_id in epics:
                continue
            known = self._issues.get(epic_id)
            if known is not None:
                epics.insert(known)
            else:
                pending[issue.instance].add(epic_key)

        for epic in await epics.fetch_missing(pending, EntityKind.EPIC, tolerant=self._tolerant):
            self._issues.insert(epic)

        logger.info(
            "epics_resolved", epics=len(epics), requested=sum(map(len, pending.values()))
        )
        return epics
