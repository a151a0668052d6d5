"""Command-line interface for gitsemver."""

from __future__ import annotations

import configparser
import json
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import click
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)
from rich.table import Table

from gitsemver import __version__
from gitsemver.config import AppConfig, get_config

if TYPE_CHECKING:
    from gitsemver.derive import DerivationReport

# Load environment variables from .env file
load_dotenv()

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="gitsemver")
@click.option("-v", "--verbose", is_flag=True, help="Show the derivation trace and summary")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output (no progress, only results)")
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """gitsemver - Derive semantic versions from git history and notes."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


def _derivation_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by the commands that run a derivation."""
    options = [
        click.option(
            "--repo",
            "-r",
            default=None,
            help="Path inside the repository (default: from config or current directory)",
        ),
        click.option("--head", default=None, help="Reference to derive at (default: HEAD)"),
        click.option(
            "--count-method",
            "-c",
            type=click.Choice(["merge", "commit", "manual"], case_sensitive=False),
            default=None,
            help="Which patch bumps are counted (default: from config or merge)",
        ),
        click.option(
            "--notes-ref",
            default=None,
            help="Notes reference holding annotations (default: refs/notes/semver)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load_config_or_exit() -> AppConfig:
    """Load configuration, exiting with a message if the file is unreadable or invalid."""
    from gitsemver.errors import log_error

    try:
        return get_config()
    except (ValidationError, yaml.YAMLError, configparser.Error) as e:
        log_error(e, "load config")
        console.print(f"[red]Error:[/red] Invalid configuration: {escape(str(e))}")
        sys.exit(1)


def _run_derivation(
    ctx: click.Context,
    repo: str | None,
    head: str | None,
    count_method: str | None,
    notes_ref: str | None,
) -> DerivationReport:
    """Run a derivation with CLI options layered over config, exiting on error."""
    from gitsemver.derive import CommandResolver, CountMethod, DerivationEngine
    from gitsemver.errors import GitSemverError, get_friendly_message, log_error
    from gitsemver.graph import GitCommitGraph
    from gitsemver.statistics import DerivationStatistics

    verbose = ctx.obj.get("verbose", False)
    quiet = ctx.obj.get("quiet", False)
    cfg = _load_config_or_exit()

    # Use CLI option or config default
    repo = repo or cfg.repository.path
    head = head or cfg.repository.head
    count_method = count_method or cfg.options.count_method
    notes_ref = notes_ref or cfg.repository.notes_ref

    stats = DerivationStatistics() if verbose else None
    resolver = CommandResolver(cfg.keywords)

    try:
        # Reject a bad policy before touching the repository
        method = CountMethod.coerce(count_method)

        with GitCommitGraph(repo, notes_ref=notes_ref) as graph:
            if quiet:
                engine = DerivationEngine(graph, resolver, statistics=stats)
                report = engine.explain(head, method)
            else:
                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    TaskProgressColumn(),
                    console=console,
                    transient=True,
                ) as progress:
                    progress_task = progress.add_task("Opening repository...", total=None)

                    def progress_callback(stage: str, current: int, total: int) -> None:
                        progress.update(
                            progress_task,
                            description=stage,
                            completed=current,
                            total=total or None,
                        )

                    engine = DerivationEngine(
                        graph,
                        resolver,
                        progress_callback=progress_callback,
                        statistics=stats,
                    )
                    report = engine.explain(head, method)

    except GitSemverError as e:
        log_error(e, f"derive {head} in {repo}")
        console.print(f"[red]Error:[/red] {get_friendly_message(e)}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(130)

    if verbose and stats is not None:
        _output_trace(report)
        stats.print_summary(console)
        console.print()

    return report


@main.command()
@_derivation_options
@click.option(
    "--format",
    "-f",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.pass_context
def version(
    ctx: click.Context,
    repo: str | None,
    head: str | None,
    count_method: str | None,
    notes_ref: str | None,
    format: str,
) -> None:
    """Print the version derived from the repository history."""
    report = _run_derivation(ctx, repo, head, count_method, notes_ref)

    if format == "json":
        _output_version_json(report)
    else:
        console.print(str(report.version), highlight=False)


@main.command()
@_derivation_options
@click.pass_context
def log(
    ctx: click.Context,
    repo: str | None,
    head: str | None,
    count_method: str | None,
    notes_ref: str | None,
) -> None:
    """Show how each commit moved the version, oldest first."""
    report = _run_derivation(ctx, repo, head, count_method, notes_ref)
    # Verbose runs already printed the trace
    if not ctx.obj.get("verbose", False):
        _output_trace(report)


def _output_trace(report: DerivationReport) -> None:
    """Output the chronological derivation trace as a table."""
    console.print()
    console.print(
        f"[bold blue]Version history - {report.head}[/bold blue] "
        f"[dim](count method: {report.count_method.value})[/dim]"
    )
    console.print()

    console.print(f"[dim]Commits walked:[/dim] {report.commits_walked}")
    console.print(f"[dim]Commands:[/dim] {len(report.steps)}")
    console.print(f"[dim]From annotations:[/dim] {len(report.annotated_steps)}")
    console.print()

    if not report.steps:
        console.print("[yellow]No commands found; version stays at 0.0.0.[/yellow]")
        return

    table = Table(show_header=True, header_style="dim", box=None, padding=(0, 2))
    table.add_column("Commit", style="cyan")
    table.add_column("Command", style="white")
    table.add_column("Effect", style="dim")
    table.add_column("Version", justify="right")

    for step in report.steps:
        effect = step.effect if step.effect == "applied" else f"[yellow]{step.effect}[/yellow]"
        table.add_row(step.short_id, step.command.description, effect, str(step.version))

    console.print(table)
    console.print()
    console.print(f"[bold]Result:[/bold] {report.version}", highlight=False)


def _output_version_json(report: DerivationReport) -> None:
    """Output the derived version as JSON."""
    output = {
        "version": str(report.version),
        "major": report.version.major,
        "minor": report.version.minor,
        "patch": report.version.patch,
        "prerelease": list(report.version.prerelease),
        "head": report.head,
        "count_method": report.count_method.value,
        "commits_walked": report.commits_walked,
    }
    console.print_json(json.dumps(output))


@main.group()
def config() -> None:
    """Manage gitsemver configuration."""
    pass


@config.command(name="show")
def config_show() -> None:
    """Show current configuration."""
    from gitsemver.config import find_config_file

    cfg = _load_config_or_exit()
    config_file = find_config_file()

    console.print("[bold]Current Configuration[/bold]")
    console.print()

    if config_file:
        console.print(f"[dim]Config file:[/dim] {config_file}")
    else:
        console.print("[dim]Config file:[/dim] (none - using defaults)")
    console.print()

    console.print("[bold]Repository:[/bold]")
    console.print(f"  Path: {cfg.repository.path}")
    console.print(f"  Head: {cfg.repository.head}")
    console.print(f"  Notes ref: {cfg.repository.notes_ref}")
    console.print()

    console.print("[bold]Options:[/bold]")
    console.print(f"  Count method: {cfg.options.count_method}")
    console.print()

    console.print("[bold]Keywords:[/bold]")
    for name, value in cfg.keywords.model_dump().items():
        console.print(f"  {name}: {value}", highlight=False, markup=False)


@config.command(name="path")
def config_path() -> None:
    """Show configuration file paths."""
    from pathlib import Path

    from gitsemver.config import find_config_file, get_config_paths

    console.print("[bold]Configuration paths (in priority order):[/bold]")
    config_file = find_config_file()

    for path in get_config_paths():
        if path.exists():
            if path == config_file:
                console.print(f"  [green]{path}[/green] (active)")
            else:
                console.print(f"  {path} (exists)")
        else:
            console.print(f"  [dim]{path}[/dim]")

    console.print()
    console.print("[bold]Other paths:[/bold]")
    console.print(f"  Error log: {Path.home() / '.gitsemver' / 'errors.log'}")
    console.print(f"  .env file: {Path.cwd() / '.env'}")


@config.command(name="init")
@click.option("--force", is_flag=True, help="Overwrite existing config file")
@click.option(
    "--global",
    "global_",
    is_flag=True,
    help="Write to ~/.gitsemver/gitsemver.ini instead of the current directory",
)
def config_init(force: bool, global_: bool) -> None:
    """Create a default configuration file."""
    from pathlib import Path

    from gitsemver.config import get_config_dir, save_default_config

    if global_:
        config_path = get_config_dir() / "gitsemver.ini"
    else:
        config_path = Path.cwd() / "gitsemver.ini"

    if config_path.exists() and not force:
        console.print(f"[yellow]Config file already exists:[/yellow] {config_path}")
        console.print("Use --force to overwrite.")
        sys.exit(1)

    save_default_config(config_path)
    console.print(f"[green]Created config file:[/green] {config_path}")
    console.print("Edit this file to customize your settings.")


if __name__ == "__main__":
    main()
