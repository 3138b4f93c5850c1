"""
IssueSource — interface of a remote issue tracker.

A source is bound to one tracker instance and is responsible for:
  1. Running a search query and returning every match (paging internally)
  2. Fetching a batch of issues by key in a single combined query
  3. Fetching one issue by key

Sources return raw tracker payloads; normalization into IssueRecord happens
in the graph layer.

Tracker registry:
  Use @TrackerRegistry.register("name") to register a source class.
  Build one with: TrackerRegistry.create(instance_config)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from issuegraph.core.config import InstanceConfig

RawIssue = dict[str, Any]


@runtime_checkable
class IssueSource(Protocol):
    """Remote tracker collaborator used by the graph engine."""

    async def search_all(self, query: str) -> list[RawIssue]: ...

    async def fetch_batch(self, keys: Sequence[str]) -> list[RawIssue]: ...

    async def get_issue(self, key: str) -> RawIssue: ...

    async def close(self) -> None: ...


class _TrackerRegistryMeta(type):
    _registry: dict[str, type[Any]] = {}


class TrackerRegistry(metaclass=_TrackerRegistryMeta):
    """Global registry of available tracker clients."""

    @classmethod
    def register(cls, name: str) -> Any:
        """Decorator: @TrackerRegistry.register("jira")"""

        def decorator(source_cls: type[Any]) -> type[Any]:
            cls._registry[name] = source_cls
            return source_cls

        return decorator

    @classmethod
    def get(cls, name: str) -> type[Any]:
        if name not in cls._registry:
            available = ", ".join(sorted(cls._registry.keys())) or "(none)"
            raise KeyError(f"Unknown tracker: {name!r}. Available: {available}")
        return cls._registry[name]

    @classmethod
    def create(cls, config: InstanceConfig) -> IssueSource:
        return cls.get(config.tracker).from_config(config)

    @classmethod
    def list_trackers(cls) -> list[str]:
        return sorted(cls._registry.keys())
