"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

from ..errors import ToolInstallError

T = TypeVar('T')

EXIT_CODES = {
    "ConfigError": 2,
    "ValueError": 2,
    "DownloadError": 3,
    "IntegrityError": 4,
    "ArchiveFormatError": 5,
    "ExtractionError": 5,
    "PublishError": 6,
}

def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Returns:
    - 2: Configuration or validation error
    - 3: Download error
    - 4: Integrity (digest mismatch) error
    - 5: Archive format or extraction error
    - 6: Publish (symlink) error
    - 1: Anything else

    ToolInstallError is mapped through the stage error it wraps.
    """
    if isinstance(exc, ToolInstallError) and exc.__cause__ is not None:
        return exit_code_for(exc.__cause__)
    return EXIT_CODES.get(type(exc).__name__, 1)

def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function; on failure prints the error message to
    stderr and exits with the mapped exit code.

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=exit_code_for(e)) from e
