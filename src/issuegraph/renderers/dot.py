"""
Graphviz DOT rendering of ReportData.

Issues are grouped in one cluster per (instance, epic link); a cluster whose
epic is in the epic index is drawn as a labelled box. Epics themselves are
not drawn as nodes. Node ids come from IssueIdentity.as_stable_string().
Output is sorted, so the same ReportData always renders the same text.
"""

from __future__ import annotations

from collections import defaultdict

from issuegraph.core.graph.models import EntityKind, IssueRecord, Relation, RelationKind
from issuegraph.core.graph.report_data import ReportData

_RELATION_STYLE = {
    RelationKind.DEPENDANCE: 'color="#2E56A6", style=solid',
    RelationKind.BLOCK: 'color="#A65229", style=bold',
    RelationKind.MENTION: 'color="#7F94BF", style=dashed',
}

_STATUS_COLOR = {
    "new": "#42526e",
    "done": "green",
    "indeterminate": "blue",
}

_FILL_COLOR = {
    EntityKind.REPORT_MEMBER: "#8CB3FF",
    EntityKind.EXTERNAL_DEPENDENCY: "#80FFD2",
}


def quote_escape(s: str) -> str:
    return s.replace("\\", "\\\\").replace('"', '\\"')


def html_escape(s: str) -> str:
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _node(issue: IssueRecord) -> str:
    label = html_escape(issue.summary)
    if issue.kind is EntityKind.EXTERNAL_DEPENDENCY:
        label = f"External issue<br/>{label}"
    if issue.assignee and issue.assignee.display_name:
        label += f"<br/>Assignee {html_escape(issue.assignee.display_name)}"
    if plan := issue.custom.plan():
        label += f"<br/>Plan: {plan}"
    if issue.status:
        color = _STATUS_COLOR.get(issue.status_category, "red")
        label += f'<br/><i><font color="{color}">{html_escape(issue.status)}</font></i>'
    return (
        f"    {issue.identity.as_stable_string()} "
        f'[fillcolor="{_FILL_COLOR[issue.kind]}";label=<{label}>;'
        f'href="{quote_escape(issue.url)}"]'
    )


def generate_dot(data: ReportData) -> str:
    lines = [
        "digraph dependency_graph {",
        "graph [layout=dot, rankdir=LR, ranksep=1.2]",
        "node [style=filled, shape=box]",
        "edge [penwidth=2]",
    ]

    clusters: dict[tuple[str, str], list[IssueRecord]] = defaultdict(list)
    for identity in sorted(data.issues.all()):
        issue = data.issues.all()[identity]
        if issue.kind is EntityKind.EPIC:
            continue
        clusters[(issue.instance.ref, issue.custom.epic_link or "")].append(issue)

    for cluster_id, ((instance_ref, epic_key), issues) in enumerate(sorted(clusters.items())):
        epic = data.epics.lookup(instance_ref, epic_key) if epic_key else None
        if epic is not None:
            lines.append(
                f' subgraph cluster_{cluster_id} {{ style=filled; color="#C0D5FF"; '
                f'label="EPIC: {quote_escape(epic.summary)}"; href="{quote_escape(epic.url)}"'
            )
        lines.extend(_node(issue) for issue in issues)
        if epic is not None:
            lines.append("  }")

    for relation in sorted(data.relations, key=Relation.sort_key):
        lines.append(
            f"{relation.from_.as_stable_string()} -> {relation.to.as_stable_string()} "
            f"[{_RELATION_STYLE[relation.kind]}]"
        )
    lines.append("}")
    return "\n".join(lines) + "\n"
