"""Graph subsystem — issue identity, store, relation classification, assembly, epics."""

from issuegraph.core.graph.classifier import (
    RELATION_VOCABULARY,
    ClassifiedLink,
    Orientation,
    RelationClassifier,
    TermClassification,
    classify_term,
)
from issuegraph.core.graph.engine import GraphAssembler
from issuegraph.core.graph.epics import EpicResolver
from issuegraph.core.graph.fields import CustomField, IssueCustomFields
from issuegraph.core.graph.identity import IssueIdentity
from issuegraph.core.graph.models import (
    EntityKind,
    ForeignRelation,
    IssueLink,
    IssueRecord,
    LinkDirection,
    Relation,
    RelationKind,
    TrackerInstance,
)
from issuegraph.core.graph.report_data import ReportData, collect_seed
from issuegraph.core.graph.store import IssueStore

__all__ = [
    "RELATION_VOCABULARY",
    "ClassifiedLink",
    "CustomField",
    "EntityKind",
    "EpicResolver",
    "ForeignRelation",
    "GraphAssembler",
    "IssueCustomFields",
    "IssueIdentity",
    "IssueLink",
    "IssueRecord",
    "IssueStore",
    "LinkDirection",
    "Orientation",
    "Relation",
    "RelationClassifier",
    "RelationKind",
    "ReportData",
    "TermClassification",
    "TrackerInstance",
    "classify_term",
    "collect_seed",
]
