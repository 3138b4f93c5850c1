"""
issuegraph — assemble issue-tracker records into a linked work-item graph.

Issues matched by a report's queries are expanded level by level along their
links (native tracker links and declared foreign relations), newly discovered
issues are fetched in batched per-instance queries, and parent epics are
resolved in a final pass. The resulting ReportData is what every renderer
consumes.

Package layout (src/issuegraph/):
  core/        — config, logging, exceptions, credential resolution
  core/graph/  — identity, store, relation classifier, assembly engine, epics
  trackers/    — remote tracker clients (Jira REST v2, ...)
  renderers/   — read-only consumers of ReportData (tables, DOT diagrams)
  cli/         — Click CLI entry point
"""

__version__ = "0.4.0"
__all__ = ["__version__"]
