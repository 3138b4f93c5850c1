"""
Graph domain models.

TrackerInstance  — graph-side handle of one configured tracker.
IssueRecord      — a fetched issue, normalized from the tracker payload.
IssueLink        — one native link as reported on an issue.
Relation         — a classified, directed edge between two identities.
ForeignRelation  — a relation declared in configuration, not by the tracker.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from issuegraph.core.graph.fields import IssueCustomFields
from issuegraph.core.graph.identity import IssueIdentity

if TYPE_CHECKING:
    from issuegraph.core.config import CustomFieldsConfig
    from issuegraph.trackers.base import IssueSource


class EntityKind(StrEnum):
    """Why an issue is part of a report run."""

    REPORT_MEMBER = "report_member"
    """Matched by one of the report's queries."""

    EXTERNAL_DEPENDENCY = "external_dependency"
    """Pulled in only through a relation."""

    EPIC = "epic"
    """Pulled in only as a parent grouping."""


class RelationKind(StrEnum):
    DEPENDANCE = "dependance"
    BLOCK = "block"
    MENTION = "mention"


class LinkDirection(StrEnum):
    INWARD = "inward"
    OUTWARD = "outward"


@dataclass(frozen=True)
class TrackerInstance:
    """
    One tracker endpoint as seen by the graph engine.

    Equality and hashing use ``ref`` only, so instances can key the
    per-instance fetch batches.
    """

    ref: str  # base URL, also IssueIdentity.instance_ref
    source: IssueSource = field(compare=False, repr=False)
    custom_fields: CustomFieldsConfig | None = field(default=None, compare=False, repr=False)
    relations_map: tuple[tuple[str, str], ...] = field(default=(), compare=False)

    def identity(self, key: str) -> IssueIdentity:
        return IssueIdentity(self.ref, key)


@dataclass(frozen=True)
class Person:
    display_name: str = ""
    email: str = ""
    name: str = ""

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None) -> Person | None:
        if not raw:
            return None
        return cls(
            display_name=raw.get("displayName") or "",
            email=raw.get("emailAddress") or "",
            name=raw.get("name") or raw.get("accountId") or "",
        )


@dataclass(frozen=True)
class IssueLink:
    """
    A native link on an issue.

    ``type_name`` is the link type's inward wording ("is blocked by",
    "depends on", ...). For an OUTWARD link the owning issue sits on the
    object side of that wording.
    """

    direction: LinkDirection
    type_name: str
    other_key: str

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> IssueLink | None:
        type_name = (raw.get("type") or {}).get("inward")
        if not type_name:
            return None
        if inward := raw.get("inwardIssue"):
            direction, other = LinkDirection.INWARD, inward
        elif outward := raw.get("outwardIssue"):
            direction, other = LinkDirection.OUTWARD, outward
        else:
            return None
        key = other.get("key")
        if not key:
            return None
        return cls(direction=direction, type_name=type_name, other_key=key)


@dataclass(frozen=True)
class IssueRecord:
    """A fetched issue. Never mutated once it is in an IssueStore."""

    instance: TrackerInstance
    key: str
    kind: EntityKind
    id: str = ""
    summary: str = ""
    description: str | None = None
    status: str = ""
    status_category: str = ""
    issue_type: str = ""
    assignee: Person | None = None
    creator: Person | None = None
    reporter: Person | None = None
    links: tuple[IssueLink, ...] = ()
    custom_fields: Mapping[str, Any] = field(default_factory=dict, repr=False)
    custom: IssueCustomFields = field(default_factory=IssueCustomFields)
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def identity(self) -> IssueIdentity:
        return IssueIdentity(self.instance.ref, self.key)

    @property
    def url(self) -> str:
        return f"{self.instance.ref}/browse/{self.key}"

    @classmethod
    def from_raw(
        cls,
        instance: TrackerInstance,
        raw: Mapping[str, Any],
        kind: EntityKind,
    ) -> IssueRecord:
        """
        Normalize a tracker payload.

        Raises FieldExtractionError when a configured custom field has the
        wrong shape; raises KeyError when the payload has no key.
        """
        fields: Mapping[str, Any] = raw.get("fields") or {}
        status = fields.get("status") or {}
        links = tuple(
            link
            for link in (IssueLink.from_raw(item) for item in fields.get("issuelinks") or [])
            if link is not None
        )
        return cls(
            instance=instance,
            key=raw["key"],
            kind=kind,
            id=str(raw.get("id") or ""),
            summary=fields.get("summary") or "",
            description=fields.get("description"),
            status=status.get("name") or "",
            status_category=(status.get("statusCategory") or {}).get("key") or "",
            issue_type=(fields.get("issuetype") or {}).get("name") or "",
            assignee=Person.from_raw(fields.get("assignee")),
            creator=Person.from_raw(fields.get("creator")),
            reporter=Person.from_raw(fields.get("reporter")),
            links=links,
            custom_fields={k: v for k, v in fields.items() if k.startswith("customfield_")},
            custom=IssueCustomFields.of_issue(instance.custom_fields, raw),
            raw=raw,
        )


@dataclass(frozen=True)
class Relation:
    """A directed edge. Sets of relations deduplicate on (from, to, kind)."""

    from_: IssueIdentity
    to: IssueIdentity
    kind: RelationKind

    def sort_key(self) -> tuple[str, str, str]:
        return (self.from_.as_stable_string(), self.to.as_stable_string(), str(self.kind))


@dataclass(frozen=True)
class ForeignRelation:
    """A declared relation between two issues, possibly on different instances."""

    from_instance: TrackerInstance
    from_key: str
    to_instance: TrackerInstance
    to_key: str
    kind: str

    @property
    def from_identity(self) -> IssueIdentity:
        return self.from_instance.identity(self.from_key)

    @property
    def to_identity(self) -> IssueIdentity:
        return self.to_instance.identity(self.to_key)
