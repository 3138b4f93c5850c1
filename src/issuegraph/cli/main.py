"""
issuegraph CLI entry point.

Commands:
  issuegraph reports                 — list configured reports
  issuegraph report <name>           — assemble a report and render it
  issuegraph get <key>               — print one raw issue as JSON
  issuegraph search <jql>            — print key and summary of every match
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine
from typing import Any, TypeVar

import click
from rich.console import Console

from issuegraph import __version__
from issuegraph.core.constants import ExitCode
from issuegraph.core.exceptions import (
    ConfigError,
    CredentialError,
    FetchError,
    FieldExtractionError,
    IssueGraphError,
)

console = Console()
err_console = Console(stderr=True)

T = TypeVar("T")


def _load(ctx: click.Context) -> Any:
    from issuegraph.core.config import load_config
    from issuegraph.core.logging import configure_logging

    config = load_config(ctx.obj["config_path"])
    if ctx.obj["log_level"] is None:
        configure_logging(
            level=config.logging.level,
            json_output=ctx.obj["log_json"] or config.logging.format == "json",
        )
    return config


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run *coro*; map issuegraph errors to exit codes."""
    try:
        return asyncio.run(coro)
    except (ConfigError, FieldExtractionError, CredentialError) as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        raise SystemExit(ExitCode.CONFIG_ERROR) from exc
    except FetchError as exc:
        err_console.print(f"[red]Fetch failed:[/red] {exc}")
        raise SystemExit(ExitCode.NETWORK_ERROR) from exc
    except IssueGraphError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(ExitCode.ERROR) from exc


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "--version", "-V", message="issuegraph %(version)s")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (default: platform config dir / config.toml).",
)
@click.option("--log-level", default=None, help="Log level for structured logging.")
@click.option("--log-json", is_flag=True, default=False, help="Emit JSON log lines.")
@click.pass_context
def cli(
    ctx: click.Context, config_path: str | None, log_level: str | None, log_json: bool
) -> None:
    """issuegraph — assemble linked issue-tracker records into a relation graph."""
    from issuegraph.core.logging import configure_logging

    if log_level is not None:
        configure_logging(level=log_level, json_output=log_json)
    ctx.obj = {"config_path": config_path, "log_level": log_level, "log_json": log_json}


# ---------------------------------------------------------------------------
# reports / report
# ---------------------------------------------------------------------------


@cli.command("reports")
@click.pass_context
def reports_cmd(ctx: click.Context) -> None:
    """List configured reports."""
    try:
        config = _load(ctx)
    except ConfigError as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        raise SystemExit(ExitCode.CONFIG_ERROR) from exc
    if not config.reports:
        console.print("[dim]No reports configured.[/dim]")
        return
    for name, report in sorted(config.reports.items()):
        console.print(
            f"[cyan]{name}[/cyan]  queries={len(report.queries)} "
            f"deepness={report.dependencies_deepness}"
        )


@cli.command("report")
@click.argument("name")
@click.option(
    "--format", "fmt", type=click.Choice(["table", "dot"]), default="table", show_default=True
)
@click.option("--depth", type=click.IntRange(min=0), default=None, help="Override deepness.")
@click.option(
    "--ignore-fetch-errors/--strict",
    default=None,
    help="Skip issues that cannot be fetched instead of failing.",
)
@click.pass_context
def report_cmd(
    ctx: click.Context, name: str, fmt: str, depth: int | None, ignore_fetch_errors: bool | None
) -> None:
    """Assemble report NAME and render it."""
    from issuegraph.core.runner import ReportRunner

    async def _assemble() -> Any:
        config = _load(ctx)
        async with ReportRunner(config) as runner:
            return await runner.run(
                name, dependencies_deepness=depth, ignore_fetch_errors=ignore_fetch_errors
            )

    data = _run(_assemble())

    if fmt == "dot":
        from issuegraph.renderers.dot import generate_dot

        click.echo(generate_dot(data), nl=False)
        return

    from issuegraph.renderers.table import issues_table, relations_table

    console.print(issues_table(data))
    console.print(relations_table(data))


# ---------------------------------------------------------------------------
# get / search
# ---------------------------------------------------------------------------


@cli.command("get")
@click.argument("key")
@click.option("--instance", default=None, help="Instance name (default: default_instance).")
@click.pass_context
def get_cmd(ctx: click.Context, key: str, instance: str | None) -> None:
    """Print issue KEY as JSON."""
    from issuegraph.core.runner import ReportRunner

    async def _get() -> Any:
        config = _load(ctx)
        async with ReportRunner(config) as runner:
            return await runner.instance(instance).source.get_issue(key)

    click.echo(json.dumps(_run(_get()), indent=2, ensure_ascii=False))


@cli.command("search")
@click.argument("jql")
@click.option("--instance", default=None, help="Instance name (default: default_instance).")
@click.pass_context
def search_cmd(ctx: click.Context, jql: str, instance: str | None) -> None:
    """Print key and summary of every issue matching JQL."""
    from issuegraph.core.runner import ReportRunner

    async def _search() -> Any:
        config = _load(ctx)
        async with ReportRunner(config) as runner:
            return await runner.instance(instance).source.search_all(jql)

    for issue in _run(_search()):
        summary = (issue.get("fields") or {}).get("summary", "")
        console.print(f"[cyan]{issue.get('key', '?')}[/cyan]  {summary}", highlight=False)
