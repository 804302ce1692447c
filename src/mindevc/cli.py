"""
mindevc CLI

Implements the CLI verbs with Operations facade integration:
- install: Download, extract and publish tools for an architecture
- fetch: Download one archive into the content-addressed cache
- show-config: Print or save the effective configuration
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .cli_context import CLIContext
from .operations import Operations, OpsConfig, run_and_exit
from .operations.printers import print_fetch_summary, print_install_summary

app = typer.Typer(name="mindevc", help="Install development tools into a container.")


def _configure_logging(verbose: bool) -> logging.Logger:
    """
    Send mindevc log records to stderr.

    Only the "mindevc" logger is configured; the root logger is untouched.
    """
    logger = logging.getLogger("mindevc")
    logger.handlers.clear()
    handler = RichHandler(console=Console(stderr=True), show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    return logger


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mindevc {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show version and exit")
) -> None:
    """Install development tools into a container."""


@app.command()
def install(
    tools: Optional[List[str]] = typer.Argument(None, help="Tools to install (default: install_tools from config)"),
    arch: Optional[str] = typer.Option(None, "--arch", help="Target architecture (default: this machine)"),
    cache_dir: Optional[str] = typer.Option(None, "--cache-dir", help="Cache directory"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Load settings from config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug messages")
) -> None:
    """Download, extract and link tools."""

    def _install() -> None:
        logger = _configure_logging(verbose)
        context = CLIContext.from_env(config_file=config)
        ops = Operations(
            config=OpsConfig(verbose=verbose, arch=arch, cache_dir=cache_dir),
            settings=context.settings,
            toolchain=context.toolchain,
            logger=logger,
        )
        result = ops.install(tools)
        print_install_summary(result, verbose=verbose)

    run_and_exit(_install)


@app.command()
def fetch(
    url: str = typer.Argument(..., help="Archive URL"),
    sha256: str = typer.Argument(..., help="Expected SHA-256 of the archive"),
    dest: Optional[str] = typer.Option(None, "--dest", help="Download directory (default: cache download dir)"),
    cache_dir: Optional[str] = typer.Option(None, "--cache-dir", help="Cache directory"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Load settings from config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug messages")
) -> None:
    """Download one archive into the content-addressed cache."""

    def _fetch() -> None:
        logger = _configure_logging(verbose)
        context = CLIContext.from_env(config_file=config)
        ops = Operations(
            config=OpsConfig(verbose=verbose, cache_dir=cache_dir),
            settings=context.settings,
            toolchain=context.toolchain,
            logger=logger,
        )
        path = ops.fetch(url, sha256, dest=dest)
        print_fetch_summary(path)

    run_and_exit(_fetch)


@app.command("show-config")
def show_config(
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Save configuration to output file"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite file if it exists"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Load settings from config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug messages")
) -> None:
    """Show current configuration values."""

    def _show_config() -> None:
        logger = _configure_logging(verbose)
        context = CLIContext.from_env(config_file=config)
        ops = Operations(config=OpsConfig(verbose=verbose), settings=context.settings,
                         toolchain=context.toolchain, logger=logger)
        yaml_text = ops.show_config()

        if output is None:
            typer.echo(yaml_text, nl=False)
            return

        out_path = Path(output)
        if out_path.exists() and not force:
            raise FileExistsError(f"Config file '{out_path}' already exists")
        out_path.write_text(yaml_text, encoding="utf-8")
        logger.debug(f"Configuration written to {out_path}")

    run_and_exit(_show_config)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
