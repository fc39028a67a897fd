"""Typer-based CLI: build, query, diff and impact-score the dependency graph."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import __version__, config
from .alias_config import AliasConfigCache, merge_project_overrides
from .builder import build_graph, format_orphan_warnings
from .diff import GraphDiffer, filter_diff
from .errors import DepGraphError
from .formatters import (
    format_cycles,
    format_diff_report,
    format_impact_report,
    format_query_as_list,
    format_query_as_tree,
)
from .git_utils import GitClient
from .impact import ImpactAnalyzer
from .models import RISK_LEVELS
from .parser import FileScanner, TypeScriptParser, find_project_root
from .query import DEPENDENCIES, DEPENDENTS, GraphQuery
from .storage import GraphStorage
from .traversal import detect_cycles

logger = logging.getLogger(__name__)

console = Console(stderr=True)

app = typer.Typer(
    help="🔗 DepGraph: dependency graph, impact and diff analysis for TypeScript projects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

alias_cache = AliasConfigCache()

ROOT_OPTION = typer.Option(
    None, "--root", "-r", file_okay=False, help="Project root (default: nearest package.json)."
)


def version_callback(value: bool):
    if value:
        typer.echo(f"DepGraph CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """DepGraph CLI: what depends on X, and what will my change break."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.LOG_LEVEL,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _resolve_root(root: Optional[Path]) -> Path:
    return root.resolve() if root else find_project_root()


def _fail(exc: Exception) -> None:
    console.print(f"\n[red]❌ Error:[/red] {escape(str(exc))}", highlight=False, soft_wrap=True)
    raise typer.Exit(code=1)


def _echo_json(payload: Dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _check_choice(value: str, choices: tuple, name: str) -> str:
    if value not in choices:
        raise typer.BadParameter(f"Invalid {name}: {value}. Must be one of: {', '.join(choices)}")
    return value


@app.command("update")
def update(root: Optional[Path] = ROOT_OPTION):
    """Scan, parse and rebuild the graph, then write .codegraph/graph.json."""
    project_root = _resolve_root(root)
    project_config = config.load_project_config(project_root)
    git_client = GitClient(project_root)

    console.print(f"📁 Project root: {project_root}")
    console.print(f"🔖 Branch: {git_client.current_branch()}")
    commit_hash = git_client.current_commit_hash()
    console.print(f"📌 Commit: {commit_hash}")

    scanner = FileScanner(exclude=project_config.exclude)
    parsed_files, failures = TypeScriptParser().parse_project(project_root, scanner)
    if scanner.skipped_dirs:
        console.print(f"[yellow]⚠ Skipped {len(scanner.skipped_dirs)} unreadable director(ies)[/yellow]")
    if failures:
        console.print(f"[yellow]⚠ Failed to parse {len(failures)} file(s)[/yellow]")
    if not parsed_files:
        typer.echo("No TypeScript files found.")
        raise typer.Exit(code=0)

    logger.debug("Parsed %d files under %s", len(parsed_files), project_root)
    alias_config = merge_project_overrides(alias_cache.load(project_root), project_config)
    result = build_graph(parsed_files, commit_hash, project_root, alias_config=alias_config)
    for line in format_orphan_warnings(result):
        typer.echo(line, err=True)

    path = GraphStorage(project_root, git_client=git_client).save(result.graph)
    typer.echo(f"Graph written to {path}")
    typer.echo(f"Files: {len(parsed_files)} | Nodes: {len(result.graph.nodes)} | Edges: {len(result.graph.edges)}")


@app.command("query")
def query(
    entity_id: str = typer.Argument(..., help='Entity ID, e.g. "src/app.ts::AppModule::configure".'),
    dependents: bool = typer.Option(False, "--dependents", help="Show what depends on the entity."),
    transitive: bool = typer.Option(False, "--transitive", help="Include transitive relationships."),
    fmt: str = typer.Option("tree", "--format", "-f", help="Output format: json, tree or list."),
    root: Optional[Path] = ROOT_OPTION,
):
    """Query the dependencies (or dependents) of an entity."""
    fmt = _check_choice(fmt.lower(), ("json", "tree", "list"), "format")
    direction = DEPENDENTS if dependents else DEPENDENCIES
    try:
        graph = GraphStorage(_resolve_root(root)).load()
        result = GraphQuery().query(graph, entity_id, direction, transitive)
    except DepGraphError as exc:
        _fail(exc)

    if fmt == "json":
        _echo_json(result.to_dict())
    elif fmt == "list":
        typer.echo(format_query_as_list(result))
    else:
        typer.echo(format_query_as_tree(result, direction))


@app.command("impact")
def impact(
    base: str = typer.Option("HEAD", "--base", help="Ref to compare the working tree against."),
    fmt: str = typer.Option("report", "--format", "-f", help="Output format: json or report."),
    threshold: Optional[str] = typer.Option(
        None, "--threshold", help="Only report impacts at or above LOW, MEDIUM, HIGH or CRITICAL."
    ),
    root: Optional[Path] = ROOT_OPTION,
):
    """Analyse the impact of uncommitted (or since-BASE) changes."""
    fmt = _check_choice(fmt.lower(), ("json", "report"), "format")
    if threshold is not None:
        threshold = _check_choice(threshold.upper(), RISK_LEVELS, "threshold")

    project_root = _resolve_root(root)
    try:
        graph = GraphStorage(project_root).load()
        changed_files = GitClient(project_root).changed_files(base)
    except DepGraphError as exc:
        _fail(exc)

    if not changed_files:
        typer.echo("✓ No TypeScript files changed. Working directory is clean.")
        raise typer.Exit(code=0)

    analyzer = ImpactAnalyzer()
    report = analyzer.analyze_impact(graph, changed_files)
    if threshold is not None:
        report = analyzer.filter_by_threshold(report, threshold)
        if not report.changed_files:
            typer.echo(f"✓ No changes meet the {threshold} risk threshold.")
            raise typer.Exit(code=0)

    if fmt == "json":
        _echo_json(report.to_dict())
    else:
        typer.echo(format_impact_report(report))


@app.command("diff")
def diff(
    ref1: str = typer.Argument(..., help="Older commit."),
    ref2: str = typer.Argument(..., help="Newer commit."),
    summary: bool = typer.Option(False, "--summary", help="Show only summary counts."),
    nodes_only: bool = typer.Option(False, "--nodes-only", help="Exclude edge changes."),
    edges_only: bool = typer.Option(False, "--edges-only", help="Exclude node changes."),
    fmt: str = typer.Option("report", "--format", "-f", help="Output format: json or report."),
    root: Optional[Path] = ROOT_OPTION,
):
    """Compare the committed graphs of two refs."""
    fmt = _check_choice(fmt.lower(), ("json", "report"), "format")
    project_root = _resolve_root(root)
    git_client = GitClient(project_root)
    storage = GraphStorage(project_root, git_client=git_client)

    for ref in (ref1, ref2):
        if not git_client.commit_exists(ref):
            _fail(DepGraphError(f"Commit '{ref}' not found"))

    try:
        graph1 = storage.load_from_commit(ref1)
        graph2 = storage.load_from_commit(ref2)
    except DepGraphError as exc:
        _fail(exc)

    differ = GraphDiffer()
    result = differ.compare_graphs(graph1, graph2)
    if result.summary.is_empty():
        typer.echo("✓ Graphs are identical. No changes detected.")
        raise typer.Exit(code=0)

    result = filter_diff(result, nodes_only=nodes_only, edges_only=edges_only)
    if fmt == "json":
        _echo_json(result.to_dict())
    else:
        typer.echo(format_diff_report(result, summary_only=summary))


@app.command("cycles")
def cycles(
    fmt: str = typer.Option("list", "--format", "-f", help="Output format: json or list."),
    root: Optional[Path] = ROOT_OPTION,
):
    """List circular dependencies in the current graph."""
    fmt = _check_choice(fmt.lower(), ("json", "list"), "format")
    try:
        graph = GraphStorage(_resolve_root(root)).load()
    except DepGraphError as exc:
        _fail(exc)

    found = detect_cycles(graph)
    if fmt == "json":
        _echo_json({"cycles": found, "count": len(found)})
    else:
        typer.echo(format_cycles(found))


if __name__ == "__main__":
    app()
