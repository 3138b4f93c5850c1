"""
ReportRunner — builds ReportData for a configured report.

Owns one tracker client per configured instance for its lifetime; use it as
an async context manager so the HTTP clients are closed::

    async with ReportRunner(config) as runner:
        data = await runner.run("roadmap")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from issuegraph.core.exceptions import ConfigError
from issuegraph.core.graph.models import ForeignRelation, TrackerInstance
from issuegraph.core.graph.report_data import ReportData, collect_seed
from issuegraph.core.logging import report_context
from issuegraph.trackers import TrackerRegistry

if TYPE_CHECKING:
    from issuegraph.core.config import IssueGraphConfig

logger = structlog.get_logger()


class ReportRunner:
    def __init__(self, config: IssueGraphConfig) -> None:
        self._config = config
        self._instances: dict[str, TrackerInstance] = {}

    def instance(self, name: str | None = None) -> TrackerInstance:
        """Return the graph handle of instance *name* (default instance if None)."""
        name = name or self._config.default_instance
        if name not in self._config.instances:
            available = ", ".join(sorted(self._config.instances))
            raise ConfigError(f"Unknown instance {name!r}. Available: {available}")
        if name not in self._instances:
            cfg = self._config.instances[name]
            self._instances[name] = TrackerInstance(
                ref=cfg.base_url,
                source=TrackerRegistry.create(cfg),
                custom_fields=cfg.custom_fields,
                relations_map=tuple(cfg.relations_map),
            )
        return self._instances[name]

    async def run(
        self,
        report_name: str,
        *,
        dependencies_deepness: int | None = None,
        ignore_fetch_errors: bool | None = None,
    ) -> ReportData:
        report = self._config.report(report_name)
        deepness = (
            report.dependencies_deepness
            if dependencies_deepness is None
            else dependencies_deepness
        )
        tolerant = (
            report.ignore_fetch_errors if ignore_fetch_errors is None else ignore_fetch_errors
        )

        with report_context(report_name):
            logger.info("report_started", queries=len(report.queries), deepness=deepness)

            seed = await collect_seed(
                [(self.instance(query.instance), query.jql) for query in report.queries]
            )
            foreign = [
                ForeignRelation(
                    from_instance=self.instance(rel.from_.instance),
                    from_key=rel.from_.key,
                    to_instance=self.instance(rel.to.instance),
                    to_key=rel.to.key,
                    kind=rel.kind,
                )
                for rel in report.foreign_relations
            ]
            return await ReportData.assemble(
                seed,
                foreign_relations=foreign,
                dependencies_deepness=deepness,
                ignore_fetch_errors=tolerant,
            )

    async def close(self) -> None:
        for instance in self._instances.values():
            try:
                await instance.source.close()
            except Exception as exc:  # noqa: BLE001
                logger.warning("tracker_close_error", instance=instance.ref, error=str(exc))

    async def __aenter__(self) -> ReportRunner:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
