"""CLI application for NuGetSync."""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from nugetsync.dotnet import DotnetRunner, discover_targets
from nugetsync.engine import build_rows
from nugetsync.errors import NugetSyncError, SettingsError
from nugetsync.git import get_branch_name, get_commit_sha, get_project_url, get_repo_ref
from nugetsync.inventory import read_inventory, write_inventory
from nugetsync.log import configure_logging
from nugetsync.models import ReportRow, RepoInventory
from nugetsync.report import (
    format_report,
    merge_reports,
    write_packages_tsv,
    write_report_tsv,
)
from nugetsync.rules import load_rules
from nugetsync.settings import Settings, load_settings, save_settings
from nugetsync.wizard import add_rule_interactive

console = Console()
logger = logging.getLogger("nugetsync")


def summarize_rows(rows: list[ReportRow]) -> Table:
    """Count report rows per action."""
    counts: dict[str, int] = {}
    for row in rows:
        counts[row.action] = counts.get(row.action, 0) + 1

    table = Table(title="NuGetSync report")
    table.add_column("Action")
    table.add_column("Rows", justify="right")
    for action, count in sorted(counts.items()):
        table.add_row(action, str(count))
    return table


def _load_settings_or_exit() -> Settings:
    try:
        return load_settings()
    except SettingsError as e:
        console.print(f"Error: {e}", style="red")
        raise typer.Exit(2)


app = typer.Typer(
    name="nugetsync",
    help="NuGetSync - Report NuGet packages that need an upgrade or removal",
    add_completion=False,
)
rules_app = typer.Typer(help="Manage package rules")
app.add_typer(rules_app, name="rules")


@app.command()
def init(
    data_root: str = typer.Option(..., "--data-root", help="Folder holding rules and outputs"),
) -> None:
    """Save the data root used by every other command."""
    try:
        settings = Settings(data_root=data_root)
    except ValueError as e:
        console.print(f"Error: {e}", style="red")
        raise typer.Exit(2)

    path = save_settings(settings)
    console.print(f"Settings saved to {path}")


@rules_app.command("add")
def rules_add() -> None:
    """Add or replace a package rule interactively."""
    settings = _load_settings_or_exit()
    try:
        add_rule_interactive(settings.rules_path, console=console)
    except NugetSyncError as e:
        console.print(f"Error: {e}", style="red")
        raise typer.Exit(1)


@app.command()
def run(
    repo: Path = typer.Option(Path("."), "--repo", help="Repository root to scan"),
    rules: Path | None = typer.Option(None, "--rules", help="Rules file (default: <data-root>/nugetsyncrules.json)"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Report file"),
    inventory: Path | None = typer.Option(None, "--inventory", help="Inventory JSON file"),
    packages: Path | None = typer.Option(None, "--packages", help="Flat package listing TSV"),
    include_transitive: bool = typer.Option(
        True, "--include-transitive/--no-include-transitive", help="List transitive packages"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Inventory a repository and write its change report."""
    configure_logging(verbose)
    settings = _load_settings_or_exit()

    repo_root = repo.resolve()
    rules_path = rules or settings.rules_path
    output_path = output or settings.report_path(repo_root)
    inventory_path = inventory or settings.inventory_path(repo_root)
    packages_path = packages or settings.packages_path(repo_root)

    try:
        # Configuration errors surface before any dotnet call.
        rule_set = load_rules(rules_path)

        targets = discover_targets(repo_root)
        if not targets:
            console.print("Error: No .csproj found in the repo root.", style="red")
            raise typer.Exit(2)

        logger.info("Found %d projects under %s", len(targets), repo_root)
        runner = DotnetRunner(repo_root)
        repo_inventory = RepoInventory(
            repo_root=str(repo_root),
            project_url=get_project_url(repo_root) or "",
            repo_ref=get_repo_ref(repo_root) or "",
            branch_name=get_branch_name(repo_root) or "",
            commit_sha=get_commit_sha(repo_root) or "",
            generated_at_utc=datetime.now(timezone.utc),
            projects=asyncio.run(runner.collect(targets, include_transitive)),
        )

        write_inventory(inventory_path, repo_inventory)
        write_packages_tsv(packages_path, repo_inventory)

        rows = build_rows(repo_inventory, rule_set)
        write_report_tsv(output_path, rows)

    except typer.Exit:
        raise
    except NugetSyncError as e:
        console.print(f"Error: {e}", style="red")
        raise typer.Exit(1)

    console.print(summarize_rows(rows))
    console.print(f"Report: {output_path}")
    console.print(f"Inventory: {inventory_path}")


@app.command()
def report(
    inventory: Path = typer.Option(..., "--inventory", help="Inventory JSON written by 'run'"),
    rules: Path = typer.Option(..., "--rules", help="Rules file"),
    output: str = typer.Option("-", "--output", "-o", help="Report file (use '-' for stdout)"),
) -> None:
    """Build a report from a saved inventory without calling dotnet."""
    try:
        rule_set = load_rules(rules)
        repo_inventory = read_inventory(inventory)
        rows = build_rows(repo_inventory, rule_set)
    except NugetSyncError as e:
        console.print(f"Error: {e}", style="red")
        raise typer.Exit(1)

    if output == "-":
        typer.echo(format_report(rows), nl=False)
    else:
        write_report_tsv(output, rows)
        console.print(f"Report: {output}")


@app.command()
def merge(
    outputs_root: Path | None = typer.Option(None, "--outputs-root", help="Folder holding per-repo outputs"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Merged report file"),
) -> None:
    """Merge every repository report into one mega report."""
    if outputs_root is None or output is None:
        settings = _load_settings_or_exit()
        outputs_root = outputs_root or settings.outputs_root
        output = output or settings.mega_report_path

    try:
        merged = merge_reports(outputs_root, output)
    except NugetSyncError as e:
        console.print(f"Error: {e}", style="red")
        raise typer.Exit(1)
    console.print(f"Merged report: {merged}")


if __name__ == "__main__":
    app()
