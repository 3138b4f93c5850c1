"""
Relation classifier — turns links into normalized Relations.

    IssueRecord.links  ──┐
                         ├─> candidate (left, right, term)
    ForeignRelations  ───┘        │
                                  v
              relations_map (per instance, exact match)
                                  │
                                  v
              RELATION_VOCABULARY ─> (kind, orientation) | unrecognized
                                  │
                                  v
                     Relation(from, to, kind)

The vocabulary is a fixed table. A term outside it is a regular outcome:
the link yields no relation and an ``unknown_relation_kind`` diagnostic is
logged naming the issue, the other key, and the term.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType

import structlog

from issuegraph.core.graph.identity import IssueIdentity
from issuegraph.core.graph.models import (
    ForeignRelation,
    IssueRecord,
    LinkDirection,
    Relation,
    RelationKind,
    TrackerInstance,
)

logger = structlog.get_logger()


class Orientation(StrEnum):
    FORWARD = "forward"
    """Left side becomes ``from``."""

    REVERSED = "reversed"
    """Right side becomes ``from``."""


@dataclass(frozen=True)
class TermClassification:
    term: str
    kind: RelationKind | None = None
    orientation: Orientation | None = None

    @property
    def recognized(self) -> bool:
        return self.kind is not None


RELATION_VOCABULARY: Mapping[str, tuple[RelationKind, Orientation]] = MappingProxyType(
    {
        "dependance for": (RelationKind.DEPENDANCE, Orientation.FORWARD),
        "depends on": (RelationKind.DEPENDANCE, Orientation.REVERSED),
        "mentioned in": (RelationKind.MENTION, Orientation.FORWARD),
        "relates to": (RelationKind.MENTION, Orientation.FORWARD),
        "mentions": (RelationKind.MENTION, Orientation.REVERSED),
        "blocks": (RelationKind.BLOCK, Orientation.FORWARD),
        "is blocked by": (RelationKind.BLOCK, Orientation.REVERSED),
    }
)


def remap_term(term: str, relations_map: Iterable[tuple[str, str]]) -> str:
    """Apply the first exact-match override; unmatched terms pass through."""
    for provider_term, normalized in relations_map:
        if provider_term == term:
            return normalized
    return term


def classify_term(term: str) -> TermClassification:
    match = RELATION_VOCABULARY.get(term)
    if match is None:
        return TermClassification(term)
    kind, orientation = match
    return TermClassification(term, kind, orientation)


@dataclass(frozen=True)
class ClassifiedLink:
    """A relation plus the issue on the far side of it."""

    relation: Relation
    target_instance: TrackerInstance
    target_key: str

    @property
    def target(self) -> IssueIdentity:
        return self.target_instance.identity(self.target_key)


@dataclass(frozen=True)
class _Candidate:
    left: IssueIdentity
    right: IssueIdentity
    term: str
    target_instance: TrackerInstance
    target_key: str


class RelationClassifier:
    """Classifies the native and declared links of an issue."""

    def __init__(self, foreign_relations: Sequence[ForeignRelation] = ()) -> None:
        self._foreign = tuple(foreign_relations)

    def _native_candidates(self, issue: IssueRecord) -> list[_Candidate]:
        candidates = []
        for link in issue.links:
            term = remap_term(link.type_name, issue.instance.relations_map)
            other = issue.instance.identity(link.other_key)
            if link.direction is LinkDirection.OUTWARD:
                left, right = other, issue.identity
            else:
                left, right = issue.identity, other
            candidates.append(_Candidate(left, right, term, issue.instance, link.other_key))
        return candidates

    def _foreign_candidates(self, issue: IssueRecord) -> list[_Candidate]:
        candidates = []
        for relation in self._foreign:
            left, right = relation.from_identity, relation.to_identity
            if left == issue.identity:
                candidates.append(
                    _Candidate(left, right, relation.kind, relation.to_instance, relation.to_key)
                )
            if right == issue.identity:
                candidates.append(
                    _Candidate(
                        left, right, relation.kind, relation.from_instance, relation.from_key
                    )
                )
        return candidates

    def classify(self, issue: IssueRecord) -> list[ClassifiedLink]:
        """Return every recognized relation touching *issue*."""
        classified = []
        for candidate in self._native_candidates(issue) + self._foreign_candidates(issue):
            result = classify_term(candidate.term)
            if not result.recognized:
                logger.error(
                    "unknown_relation_kind",
                    issue=issue.key,
                    other=candidate.target_key,
                    term=candidate.term,
                )
                continue
            if result.orientation is Orientation.FORWARD:
                relation = Relation(candidate.left, candidate.right, result.kind)
            else:
                relation = Relation(candidate.right, candidate.left, result.kind)
            classified.append(
                ClassifiedLink(relation, candidate.target_instance, candidate.target_key)
            )
        logger.debug("links_classified", issue=issue.key, count=len(classified))
        return classified
