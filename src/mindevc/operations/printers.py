"""
Human-readable output formatting.

Centralizes all CLI output formatting so CLI commands stay thin.
"""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..pipeline import PipelineResult

_console = Console()


def print_install_summary(result: PipelineResult, verbose: bool = False) -> None:
    """
    Print installed and skipped tools.

    Args:
        result: Pipeline result to display
        verbose: Also show cache and extraction paths
    """
    _console.print(f"[bold]Architecture:[/] {result.arch}")

    if result.installed:
        table = Table(title="Installed")
        table.add_column("Tool", style="cyan")
        table.add_column("Links", style="yellow")
        if verbose:
            table.add_column("Extracted to", style="dim")
            table.add_column("Archive", style="dim")

        for name, outcome in result.installed.items():
            links = "\n".join(str(p) for p in outcome.links) or "-"
            if verbose:
                table.add_row(name, links, str(outcome.extraction.root), outcome.archive_path.name)
            else:
                table.add_row(name, links)
        _console.print(table)
    else:
        _console.print("[dim]No tools installed[/]")

    for name, reason in result.skipped.items():
        _console.print(f"[yellow]Skipped[/] {name}: {reason}")


def print_fetch_summary(path: Path) -> None:
    """Print the cached file path (plain, so it can be captured by scripts)."""
    typer.echo(str(path))
