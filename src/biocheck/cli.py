"""CLI interface for BioCheck."""

import asyncio
import contextlib
import json
import logging
import signal
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .biography import BiographyParser, SourceValidator
from .crawl import ByProfile, ByQuery, ByWatchlist, CancellationToken, CheckStrategy, RandomSample, TraversalEngine
from .logging import configure_logging
from .models.config import MAX_RANDOM_PROFILE_ID, CheckConfig, EngineSettings, ReportMode
from .report import ResultCollector, RunSummary
from .rules import RuleSet, SourceContext
from .sources import WikiTreeClient, WikiTreeError, WikiTreePlusClient
from .sources.wikitree import DEFAULT_APP_ID

app = typer.Typer(
    name="biocheck",
    help="Check WikiTree biographies for sources and style",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """Options shared by every check command."""

    open_only: bool = False
    ignore_pre1500: bool = False
    reliable_only: bool = False
    report: ReportMode = ReportMode.ISSUES
    sources_report: bool = False
    review_report: bool = False
    stats_only: bool = False
    max_profiles: int = 5000
    max_rows: int = 1000
    search_term: str = ""
    output: Path | None = None


def get_config():
    """Load configuration from environment."""
    from dotenv import load_dotenv
    import os

    load_dotenv()

    return {
        "user_id": os.getenv("WIKITREE_USER_ID", "0") or "0",
        "cookies": os.getenv("WIKITREE_COOKIES"),
        "app_id": os.getenv("WIKITREE_APP_ID", DEFAULT_APP_ID),
        "log_level": os.getenv("BIOCHECK_LOG_LEVEL"),
    }


def make_clients(config: dict):
    """Build the WikiTree and WikiTree+ clients for a run."""
    client = WikiTreeClient(app_id=config["app_id"], cookies=config.get("cookies"))
    return client, WikiTreePlusClient()


@app.callback()
def main(
    ctx: typer.Context,
    open_only: bool = typer.Option(False, "--open-only", help="Only check Open profiles"),
    ignore_pre1500: bool = typer.Option(False, "--ignore-pre1500", help="Skip profiles born or died before 1500"),
    reliable_only: bool = typer.Option(False, "--reliable-only", help="Apply pre-1700 source rules to every profile"),
    report: ReportMode = typer.Option(ReportMode.ISSUES, "--report", "-r", help="Which profiles to report"),
    sources_report: bool = typer.Option(False, "--sources", help="Report source lines instead of style"),
    review_report: bool = typer.Option(False, "--review", help="Report a profile review worksheet"),
    stats_only: bool = typer.Option(False, "--stats-only", help="Only report counts"),
    max_profiles: int = typer.Option(5000, "--max-profiles", help="Maximum profiles to check"),
    max_rows: int = typer.Option(1000, "--max-rows", help="Maximum profiles to report"),
    search_term: str = typer.Option("", "--search", "-s", help="Flag biographies containing this text"),
    output: Path = typer.Option(None, "--output", "-o", help="Write rows and summary as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
):
    """Check WikiTree biographies for sources and style."""
    configure_logging("DEBUG" if verbose else None)
    ctx.obj = RunOptions(
        open_only=open_only,
        ignore_pre1500=ignore_pre1500,
        reliable_only=reliable_only,
        report=report,
        sources_report=sources_report,
        review_report=review_report,
        stats_only=stats_only,
        max_profiles=max_profiles,
        max_rows=max_rows,
        search_term=search_term,
        output=output,
    )


# =============================================================================
# Check commands
# =============================================================================

@app.command()
def profile(
    ctx: typer.Context,
    wikitree_id: str = typer.Argument(..., help="Starting profile, e.g. Smith-123"),
    ancestors: int = typer.Option(0, "--ancestors", "-a", help="Generations of ancestors"),
    descendants: int = typer.Option(0, "--descendants", "-d", help="Generations of descendants"),
    relatives: int = typer.Option(0, "--relatives", help="Degrees of connection to expand"),
    all_connections: bool = typer.Option(
        False, "--all-connections", help="Expand relatives of every profile, not just those with issues"
    ),
):
    """Check a profile and its family."""
    _run_check(
        ctx.obj,
        ByProfile.from_config,
        wikitree_id=wikitree_id,
        ancestor_generations=ancestors,
        descendant_generations=descendants,
        relative_degrees=relatives,
        check_all_connections=all_connections,
    )


@app.command()
def query(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="WikiTree+ query"),
    start: int = typer.Option(0, "--start", help="First result to check"),
    limit: int = typer.Option(1000, "--limit", "-l", help="Maximum results to check"),
    relatives: int = typer.Option(0, "--relatives", help="Degrees of connection to expand"),
):
    """Check profiles found by a WikiTree+ query."""
    _run_check(
        ctx.obj, ByQuery.from_config, query=text, search_start=start, search_max=limit, relative_degrees=relatives
    )


@app.command()
def watchlist(
    ctx: typer.Context,
    start: int = typer.Option(0, "--start", help="First watchlist entry to check"),
    limit: int = typer.Option(1000, "--limit", "-l", help="Maximum profiles to check"),
):
    """Check the profiles on your watchlist (requires WIKITREE_COOKIES)."""
    _run_check(ctx.obj, ByWatchlist.from_config, search_start=start, search_max=limit)


@app.command("random")
def random_profiles(
    ctx: typer.Context,
    count: int = typer.Option(100, "--count", "-n", help="Profiles to sample"),
    min_id: int = typer.Option(1, "--min", help="Smallest profile id"),
    max_id: int = typer.Option(MAX_RANDOM_PROFILE_ID, "--max", help="Largest profile id (exclusive)"),
):
    """Check randomly chosen profiles."""
    _run_check(ctx.obj, RandomSample.from_config, search_max=count, random_min=min_id, random_max=max_id)


def _run_check(options: RunOptions, make_strategy, **fields) -> None:
    env = get_config()
    try:
        config = CheckConfig(
            open_only=options.open_only,
            ignore_pre1500=options.ignore_pre1500,
            reliable_sources_only=options.reliable_only,
            report_mode=options.report,
            sources_report=options.sources_report,
            review_report=options.review_report,
            stats_only=options.stats_only,
            max_profiles=options.max_profiles,
            max_report_rows=options.max_rows,
            search_term=options.search_term,
            user_id=int(env["user_id"]),
            **fields,
        )
        strategy = make_strategy(config)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    summary, collector = asyncio.run(_check(config, strategy, env))

    _display_report(collector)
    _display_summary(summary)

    if options.output:
        collector.write_json(options.output, summary)
        console.print(f"[green]Results saved to {options.output}[/green]")

    if summary.error_message:
        raise typer.Exit(2)


async def _check(config: CheckConfig, strategy: CheckStrategy, env: dict) -> tuple[RunSummary, ResultCollector]:
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    # Ctrl-C finishes in-flight requests and reports what was found
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, token.cancel)

    client, plus_client = make_clients(env)
    try:
        async with client, plus_client:
            rules = RuleSet()
            try:
                rules.load(await plus_client.fetch_templates())
            except WikiTreeError as e:
                logger.warning("Template catalog unavailable, using built-in rules only: %s", e)
                rules.load(None)

            engine = TraversalEngine(
                client,
                rules,
                config,
                settings=EngineSettings.from_env(),
                token=token,
                plus_client=plus_client,
            )
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True,
            ) as progress:
                task = progress.add_task("Checking profiles...", total=None)
                summary = await engine.run(strategy)
                progress.update(task, completed=True)
    finally:
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.remove_signal_handler(signal.SIGINT)

    return summary, engine.collector


# =============================================================================
# Local check
# =============================================================================

@app.command()
def bio(
    ctx: typer.Context,
    file_path: Path = typer.Argument(..., help="Biography wiki text file"),
    templates: Path = typer.Option(None, "--templates", "-t", help="Template catalog JSON file"),
    pre1700: bool = typer.Option(False, "--pre1700", help="Apply pre-1700 source rules"),
    pre1500: bool = typer.Option(False, "--pre1500", help="Profile is pre-1500"),
    too_old: bool = typer.Option(False, "--too-old", help="Profile is too old to remember"),
    undated: bool = typer.Option(False, "--undated", help="Profile has no dates"),
):
    """Check one biography file offline."""
    options: RunOptions = ctx.obj
    if not file_path.exists():
        console.print(f"[red]Error: File not found: {file_path}[/red]")
        raise typer.Exit(1)

    rules = RuleSet()
    if templates:
        try:
            catalog = json.loads(templates.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            console.print(f"[red]Error: Cannot read template catalog: {e}[/red]")
            raise typer.Exit(1)
        rules.load(catalog.get("templates") if isinstance(catalog, dict) else catalog)
    else:
        rules.load(None)

    reliable = options.reliable_only
    context = SourceContext(
        too_old_to_remember=too_old or pre1700 or pre1500 or reliable,
        is_pre1700=pre1700 or pre1500 or reliable,
        is_pre1500=pre1500,
    )
    parsed = BiographyParser(rules).parse(
        file_path.read_text(encoding="utf-8"), context, is_undated=undated, search_term=options.search_term
    )
    judgment = SourceValidator(rules).validate(parsed)

    if judgment.is_marked_unsourced:
        status = "[yellow]Marked unsourced[/yellow]"
    elif judgment.has_sources:
        status = "[green]Sourced[/green]"
    else:
        status = "[red]Possibly unsourced[/red]"
    console.print(Panel(f"[bold]Status:[/bold] {status}", title=file_path.name))

    if judgment.messages:
        console.print("\n[bold]Messages:[/bold]")
        for message in judgment.messages:
            console.print(f"  • {message}")

    table = Table(title="Sources")
    table.add_column("Valid")
    table.add_column("Source")
    for line in judgment.valid_sources:
        table.add_row("[green]yes[/green]", line)
    for line in judgment.invalid_sources:
        table.add_row("[red]no[/red]", line)
    if judgment.valid_sources or judgment.invalid_sources:
        console.print(table)

    if parsed.has_search_string:
        console.print(f"[cyan]Found '{options.search_term}'[/cyan]")

    if options.output:
        data = judgment.model_dump(mode="json")
        data["inline_ref_count"] = parsed.inline_ref_count
        data["possible_sources_line_count"] = parsed.possible_sources_line_count
        data["has_search_string"] = parsed.has_search_string
        options.output.write_text(json.dumps(data, indent=2), encoding="utf-8")
        console.print(f"[green]Results saved to {options.output}[/green]")


# =============================================================================
# Output
# =============================================================================

def _display_report(collector: ResultCollector) -> None:
    config = collector.config
    rows = collector.sorted_rows()
    if config.stats_only or not rows:
        return

    if config.sources_report:
        table = Table(title="Sources")
        table.add_column("WikiTree ID")
        table.add_column("Name")
        table.add_column("#")
        table.add_column("Source")
        for row in rows:
            table.add_row(row.wikitree_id, row.name, str(row.source_number), row.source_line)
    elif config.review_report:
        table = Table(title="Profile Review")
        for column in ("WikiTree ID", "Name", "Status", "Style", "Privacy", "Orphan", "Birth", "Death"):
            table.add_column(column)
        for row in rows:
            table.add_row(
                row.wikitree_id,
                row.name,
                row.status.value,
                "X" if row.has_style_issues else "",
                row.privacy,
                "X" if row.is_orphan else "",
                row.birth_date,
                row.death_date,
            )
    else:
        table = Table(title="Profiles")
        for column in ("WikiTree ID", "Name", "Status", "Empty", "Missing End", "Bio Heading",
                       "Sources Heading", "References", "Acknowledgements", "Lines", "Refs", "Sources"):
            table.add_column(column)
        for row in rows:
            table.add_row(
                row.wikitree_id,
                row.name,
                row.status.value,
                "Yes" if row.is_empty else "",
                row.missing_end,
                row.biography_heading,
                row.sources_heading,
                row.references_tag,
                row.acknowledgements,
                str(row.bio_line_count or ""),
                str(row.inline_ref_count or ""),
                str(row.source_line_count or ""),
            )
    console.print(table)


def _display_summary(summary: RunSummary) -> None:
    style = "red" if summary.error_message else "yellow" if summary.incomplete else "green"
    console.print(
        Panel(
            f"{summary.progress_message}\n{summary.state_message}",
            title="[bold]BioCheck[/bold]",
            border_style=style,
        )
    )


if __name__ == "__main__":
    app()
