"""
GraphAssembler — bounded-depth breadth-first expansion of the issue graph.

Round n:
    frontier (issues first stored in round n-1; the seed set for round 0)
        │  classify every link of every frontier issue
        v
    relation set  += classified relations
    pending fetch += targets not in the store, grouped by instance
        │  one batched fetch per instance, concurrently, joined
        v
    newly stored issues (tagged EXTERNAL_DEPENDENCY) = frontier of round n+1

Expansion stops after ``deepness`` rounds; links of the last round's new
issues are not followed. An issue enters a frontier only in the round it
was first stored, so link cycles neither refetch nor revisit anything.
An issue stored earlier is not re-examined when a later round finds new
links to it.
"""

from __future__ import annotations

from collections import defaultdict

import structlog

from issuegraph.core.graph.classifier import RelationClassifier
from issuegraph.core.graph.models import EntityKind, IssueRecord, Relation, TrackerInstance
from issuegraph.core.graph.store import IssueStore

logger = structlog.get_logger()


class GraphAssembler:
    """Expands an IssueStore along issue relations."""

    def __init__(
        self,
        store: IssueStore,
        classifier: RelationClassifier,
        *,
        deepness: int = 1,
        ignore_fetch_errors: bool = False,
    ) -> None:
        if deepness < 0:
            raise ValueError("deepness must not be negative")
        self._store = store
        self._classifier = classifier
        self._deepness = deepness
        self._tolerant = ignore_fetch_errors

    async def _expand_round(
        self, frontier: list[IssueRecord], relations: set[Relation]
    ) -> list[IssueRecord]:
        pending: dict[TrackerInstance, set[str]] = defaultdict(set)
        for issue in frontier:
            for link in self._classifier.classify(issue):
                relations.add(link.relation)
                if link.target not in self._store:
                    pending[link.target_instance].add(link.target_key)

        return await self._store.fetch_missing(
            pending, EntityKind.EXTERNAL_DEPENDENCY, tolerant=self._tolerant
        )

    def _prune(self, relations: set[Relation]) -> set[Relation]:
        kept = set()
        for relation in relations:
            if relation.from_ in self._store and relation.to in self._store:
                kept.add(relation)
            else:
                logger.warning(
                    "relation_dropped",
                    from_issue=relation.from_.issue_key,
                    to_issue=relation.to.issue_key,
                    kind=str(relation.kind),
                )
        return kept

    async def assemble(self) -> set[Relation]:
        """Run every expansion round and return the relation set."""
        relations: set[Relation] = set()
        frontier = list(self._store)

        logger.info("relations_fetch_started", seed=len(frontier), deepness=self._deepness)
        for level in range(self._deepness):
            if not frontier:
                break
            logger.info("relations_round_started", round=level + 1, frontier=len(frontier))
            frontier = await self._expand_round(frontier, relations)
            logger.info(
                "relations_round_done",
                round=level + 1,
                relations=len(relations),
                discovered=len(frontier),
            )

        return self._prune(relations)
