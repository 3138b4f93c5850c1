"""
Trackers — remote issue tracker clients.

Each client normalises nothing: it returns raw tracker payloads and leaves
the conversion to IssueRecord to the graph layer.

Auto-imports all built-in trackers so that TrackerRegistry.get("jira")
works without explicit imports.
"""

# Auto-register built-in trackers
from issuegraph.trackers import jira as _jira  # noqa: F401
from issuegraph.trackers.base import IssueSource, TrackerRegistry  # noqa: F401
