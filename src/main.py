"""nsguard CLI - validate dereferences of imported ES module namespaces."""

import json
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.markup import escape
from rich.table import Table

from src.config import __version__, get_config
from src.utils.logger import configure_logging
from src.utils.safe_console import SafeConsole
from src.analyzer.cache import ExportCache
from src.analyzer.errors import NsguardError
from src.analyzer.export_map import ExportMapRegistry
from src.analyzer.linter import Linter, LintResult, RuleOptions, collect_files
from src.analyzer.resolver import ModuleResolver, load_tsconfig_paths

app = typer.Typer(
    name="nsguard",
    help="Validate that imported namespaces contain the names dereferenced from them",
    add_completion=False
)
console = SafeConsole()

# Cache management sub-command
cache_app = typer.Typer(name="cache", help="Manage the nsguard export cache")


def build_linter(project_root: Path, allow_computed: Optional[bool] = None,
                 use_cache: bool = True) -> Tuple[Linter, Optional[ExportCache]]:
    """Wire resolver, export registry and rule options for one run.

    Returns:
        (linter, cache); the caller closes the cache when done
    """
    config = get_config()
    resolver = ModuleResolver(project_root, load_tsconfig_paths(project_root))
    cache = ExportCache(project_root, config.cache_dir) if use_cache and config.use_cache else None
    registry = ExportMapRegistry(resolver, cache=cache, ignore=config.ignore_patterns)
    options = RuleOptions.from_config(config, allow_computed=allow_computed)
    return Linter(options, registry), cache


def _display_path(path: str, project_root: Path) -> str:
    try:
        return str(Path(path).relative_to(project_root))
    except ValueError:
        return path


def _print_result(result: LintResult, project_root: Path):
    table = Table(title=escape(_display_path(result.file_path, project_root)), title_justify="left")
    table.add_column("Line", style="cyan", justify="right")
    table.add_column("Severity")
    table.add_column("Message", no_wrap=False)

    for diagnostic in result.diagnostics:
        severity = "[red]error[/red]" if diagnostic.is_error else "[yellow]warning[/yellow]"
        table.add_row(f"{diagnostic.line}:{diagnostic.column}", severity, escape(diagnostic.message))

    console.print(table)


@app.command()
def check(
    paths: Optional[List[str]] = typer.Argument(None, help="Files or directories to check (default: .)"),
    allow_computed: Optional[bool] = typer.Option(
        None, "--allow-computed/--no-allow-computed",
        help="Tolerate computed references (ns[expr]) to namespace members"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Do not read or write the export cache"),
    output_format: str = typer.Option("text", "--format", "-f", help="Output format: text or json"),
    project_root: Optional[str] = typer.Option(None, "--project-root", help="Root for bare specifiers, tsconfig and cache (default: cwd)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Check namespace dereferences in JavaScript/TypeScript files."""
    configure_logging(verbose)

    if output_format not in ("text", "json"):
        console.print(f"[bold red]Error:[/bold red] Unknown format: {escape(output_format)}")
        raise typer.Exit(2)

    root = Path(project_root).resolve() if project_root else Path.cwd()
    targets = [Path(p) for p in (paths or ["."])]
    for target in targets:
        if not target.exists():
            console.print(f"[bold red]Error:[/bold red] Path does not exist: {escape(str(target))}")
            raise typer.Exit(2)

    linter, cache = build_linter(root, allow_computed=allow_computed, use_cache=not no_cache)

    results: List[LintResult] = []
    failures = 0
    try:
        for file_path in collect_files(targets, get_config().extensions):
            try:
                results.append(linter.lint_file(file_path))
            except NsguardError as e:
                failures += 1
                console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
    finally:
        if cache is not None:
            cache.close()

    errors = sum(r.error_count for r in results)
    warnings = sum(r.warning_count for r in results)

    if output_format == "json":
        payload = [d.to_dict() for r in results for d in r.diagnostics]
        typer.echo(json.dumps(payload, indent=2))
    else:
        for result in results:
            if result.diagnostics:
                _print_result(result, root)

        if errors or warnings:
            console.print(
                f"\n[bold red]✗ {errors + warnings} problems ({errors} errors, {warnings} warnings)[/bold red]"
            )
        else:
            console.print(f"[bold green]✓ No problems found in {len(results)} files[/bold green]")

    if errors or failures:
        raise typer.Exit(1)


# =========================================================================
# CACHE MANAGEMENT COMMANDS
# =========================================================================

@cache_app.command("clear")
def cache_clear(
    project_path: str = typer.Argument(".", help="Project root path"),
):
    """Clear the export cache for a project."""
    project_path = Path(project_path).resolve()

    if not project_path.exists():
        console.print(f"[bold red]Error:[/bold red] Project path does not exist: {escape(str(project_path))}")
        raise typer.Exit(1)

    with ExportCache(project_path, get_config().cache_dir) as cache:
        cache.clear_cache()

    console.print(f"[green]✓ Cache cleared for {escape(str(project_path))}[/green]")


@cache_app.command("stats")
def cache_stats(
    project_path: str = typer.Argument(".", help="Project root path"),
):
    """Display export cache statistics for a project."""
    project_path = Path(project_path).resolve()

    if not project_path.exists():
        console.print(f"[bold red]Error:[/bold red] Project path does not exist: {escape(str(project_path))}")
        raise typer.Exit(1)

    with ExportCache(project_path, get_config().cache_dir) as cache:
        stats = cache.get_cache_stats()

    table = Table(title=f"Cache Statistics: {escape(str(project_path))}", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="green")

    table.add_row("Modules Cached", str(stats['total_files']))
    table.add_row("Modules With Parse Errors", str(stats['files_with_parse_errors']))

    console.print(table)


# Register cache sub-command
app.add_typer(cache_app)


def _version_callback(value: bool):
    if value:
        typer.echo(f"nsguard {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show the version and exit"),
):
    """nsguard - namespace import dereference checker."""


if __name__ == "__main__":
    app()
