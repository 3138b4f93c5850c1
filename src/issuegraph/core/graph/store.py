"""
IssueStore — identity → IssueRecord mapping for one report run.

Insertion contract (first write wins):
  ``insert(record)`` stores the record only if its identity is not present
  yet and always returns the stored record. Re-inserting an identity never
  refreshes the data, so a record object stays the same for the whole run
  no matter how often traversal meets it again.

Batched fetch:
  ``fetch_missing()`` takes the keys still missing, grouped by instance,
  and issues one combined query per instance. The per-instance queries run
  concurrently; the store is only mutated after all of them have returned.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

import structlog

from issuegraph.core.exceptions import FetchError
from issuegraph.core.graph.identity import IssueIdentity
from issuegraph.core.graph.models import EntityKind, IssueRecord, TrackerInstance

logger = structlog.get_logger()

FetchRequests = Mapping[TrackerInstance, Iterable[str]]


async def _fetch_instance_batch(
    instance: TrackerInstance,
    keys: list[str],
    kind: EntityKind,
    tolerant: bool,
) -> list[IssueRecord]:
    log = logger.bind(instance=instance.ref, keys=keys, kind=str(kind))
    log.info("batch_fetch_started", count=len(keys))
    records: list[IssueRecord] = []
    try:
        raw_issues = await instance.source.fetch_batch(keys)
        try:
            records = [IssueRecord.from_raw(instance, raw, kind) for raw in raw_issues]
        except (KeyError, TypeError, AttributeError) as exc:
            raise FetchError(
                f"Malformed issue payload from {instance.ref}: {exc!r}",
                instance_ref=instance.ref,
                keys=keys,
            ) from exc

        missing = sorted(set(keys) - {record.key for record in records})
        if missing:
            raise FetchError(
                f"{instance.ref} did not return {', '.join(missing)}",
                instance_ref=instance.ref,
                keys=missing,
            )
    except FetchError as exc:
        if not tolerant:
            raise
        log.warning("fetch_failed_ignored", error=str(exc), failed=list(exc.keys))
        return [r for r in records if r.key not in exc.keys]

    log.debug("batch_fetch_done", count=len(records))
    return records


async def fetch_records(
    requests: FetchRequests,
    kind: EntityKind,
    *,
    tolerant: bool = False,
) -> list[IssueRecord]:
    """
    Fetch issues by key, one combined query per instance, concurrently.

    In strict mode the first failure (in instance order) is raised once all
    batches have returned. In tolerant mode failed keys are logged and skipped.
    """
    batches = [(instance, sorted(set(keys))) for instance, keys in requests.items()]
    batches = [(instance, keys) for instance, keys in batches if keys]
    if not batches:
        return []

    results = await asyncio.gather(
        *[_fetch_instance_batch(instance, keys, kind, tolerant) for instance, keys in batches],
        return_exceptions=True,
    )
    records: list[IssueRecord] = []
    for result in results:
        if isinstance(result, BaseException):
            raise result
        records.extend(result)
    return records


class IssueStore:
    """
    Mapping from IssueIdentity to the first IssueRecord stored for it.

    Records are read with ``get(identity)`` or ``get(instance, key)``; the
    epic store of a report answers ``epics.get(instance, "ABC-100")``.
    """

    def __init__(self, records: Iterable[IssueRecord] = ()) -> None:
        self._issues: dict[IssueIdentity, IssueRecord] = {}
        for record in records:
            self.insert(record)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(
        self, identity: IssueIdentity | TrackerInstance | str, key: str | None = None
    ) -> IssueRecord | None:
        """
        Return the stored record, or None.

        Takes an IssueIdentity, or an instance (or its base URL) plus an
        issue key: ``get(identity)`` and ``get(instance, "ABC-1")`` are the same.
        """
        if key is not None:
            ref = identity.ref if isinstance(identity, TrackerInstance) else identity
            identity = IssueIdentity(str(ref), key)
        return self._issues.get(identity)  # type: ignore[arg-type]

    def lookup(self, instance_ref: str, key: str) -> IssueRecord | None:
        return self.get(instance_ref, key)

    def all(self) -> Mapping[IssueIdentity, IssueRecord]:
        """Read-only view of every stored record."""
        return MappingProxyType(self._issues)

    def __contains__(self, identity: object) -> bool:
        return identity in self._issues

    def __len__(self) -> int:
        return len(self._issues)

    def __iter__(self) -> Iterator[IssueRecord]:
        return iter(list(self._issues.values()))

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, record: IssueRecord) -> IssueRecord:
        """Store *record* unless its identity is known; return the stored record."""
        return self._issues.setdefault(record.identity, record)

    async def fetch_missing(
        self,
        requests: FetchRequests,
        kind: EntityKind,
        *,
        tolerant: bool = False,
    ) -> list[IssueRecord]:
        """
        Fetch the requested keys that are not stored yet and insert them.

        Returns the records this call inserted, tagged with *kind*.
        """
        missing: dict[TrackerInstance, set[str]] = {}
        for instance, keys in requests.items():
            wanted = {key for key in keys if instance.identity(key) not in self._issues}
            if wanted:
                missing[instance] = wanted

        inserted: list[IssueRecord] = []
        for record in await fetch_records(missing, kind, tolerant=tolerant):
            if self.insert(record) is record:
                inserted.append(record)
        return inserted
