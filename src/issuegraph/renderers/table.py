"""Plain table rendering of ReportData (issues and relations)."""

from __future__ import annotations

from rich.table import Table

from issuegraph.core.graph.models import Relation
from issuegraph.core.graph.report_data import ReportData


def issues_table(data: ReportData) -> Table:
    table = Table(title="Issues", show_lines=False)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Kind", style="dim")
    table.add_column("Status")
    table.add_column("Assignee")
    table.add_column("Epic")
    table.add_column("Plan", no_wrap=True)
    table.add_column("Summary")

    for identity in sorted(data.issues.all()):
        issue = data.issues.all()[identity]
        epic = ""
        if issue.custom.epic_link:
            record = data.epics.lookup(issue.instance.ref, issue.custom.epic_link)
            epic = record.summary if record else issue.custom.epic_link
        table.add_row(
            issue.key,
            str(issue.kind),
            issue.status or "-",
            issue.assignee.display_name if issue.assignee else "-",
            epic,
            issue.custom.plan(),
            issue.summary,
        )
    return table


def relations_table(data: ReportData) -> Table:
    table = Table(title="Relations", show_lines=False)
    table.add_column("From", style="cyan", no_wrap=True)
    table.add_column("Kind", style="bold")
    table.add_column("To", style="cyan", no_wrap=True)

    for relation in sorted(data.relations, key=Relation.sort_key):
        table.add_row(relation.from_.issue_key, str(relation.kind), relation.to.issue_key)
    return table
