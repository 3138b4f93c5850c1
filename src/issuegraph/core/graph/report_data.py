"""
ReportData — the assembled graph handed to renderers.

    seed queries ──(concurrent search_all)──> ReportMember records
                                                   │
                                                   v
                     IssueStore ──GraphAssembler──> relations
                         │
                         └──────EpicResolver──────> epic index

Built once per report run and read-only afterwards.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from issuegraph.core.exceptions import FetchError
from issuegraph.core.graph.classifier import RelationClassifier
from issuegraph.core.graph.engine import GraphAssembler
from issuegraph.core.graph.epics import EpicResolver
from issuegraph.core.graph.models import (
    EntityKind,
    ForeignRelation,
    IssueRecord,
    Relation,
    TrackerInstance,
)
from issuegraph.core.graph.store import IssueStore

logger = structlog.get_logger()


async def _run_query(instance: TrackerInstance, query: str) -> list[IssueRecord]:
    jql = " ".join(query.split("\n")).strip()
    raw_issues = await instance.source.search_all(jql)
    try:
        records = [
            IssueRecord.from_raw(instance, raw, EntityKind.REPORT_MEMBER) for raw in raw_issues
        ]
    except (KeyError, TypeError, AttributeError) as exc:
        raise FetchError(
            f"Malformed search result from {instance.ref}: {exc!r}", instance_ref=instance.ref
        ) from exc
    logger.info("seed_query_done", instance=instance.ref, query=jql, issues=len(records))
    return records


async def collect_seed(queries: Sequence[tuple[TrackerInstance, str]]) -> list[IssueRecord]:
    """Run every report query concurrently; any failure is raised after the join."""
    results = await asyncio.gather(
        *[_run_query(instance, query) for instance, query in queries],
        return_exceptions=True,
    )
    seed: list[IssueRecord] = []
    for result in results:
        if isinstance(result, BaseException):
            raise result
        seed.extend(result)
    return seed


@dataclass(frozen=True)
class ReportData:
    issues: IssueStore
    epics: IssueStore
    relations: frozenset[Relation]

    @classmethod
    async def assemble(
        cls,
        seed: Sequence[IssueRecord],
        *,
        foreign_relations: Sequence[ForeignRelation] = (),
        dependencies_deepness: int = 1,
        ignore_fetch_errors: bool = False,
    ) -> ReportData:
        issues = IssueStore(seed)
        relations = await GraphAssembler(
            issues,
            RelationClassifier(foreign_relations),
            deepness=dependencies_deepness,
            ignore_fetch_errors=ignore_fetch_errors,
        ).assemble()
        epics = await EpicResolver(issues, ignore_fetch_errors=ignore_fetch_errors).resolve()
        logger.info(
            "report_data_assembled",
            issues=len(issues),
            epics=len(epics),
            relations=len(relations),
        )
        return cls(issues=issues, epics=epics, relations=frozenset(relations))
