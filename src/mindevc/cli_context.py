"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
loaded tool configuration, avoiding global state.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from .config import load_config
from .models import ToolchainConfig
from .settings import Settings, create_settings_from_env


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Settings come from the environment, optionally overridden by command
    line options; the tool configuration is loaded on first access.
    """
    settings: Settings
    _toolchain: Optional[ToolchainConfig] = None

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> CLIContext:
        """
        Create CLI context from environment variables.

        Args:
            config_file: Config file given on the command line (overrides MINDEVC_CONFIG)
        """
        settings = create_settings_from_env()
        if config_file:
            settings = replace(settings, config_file=config_file)
        return cls(settings=settings)

    @property
    def toolchain(self) -> ToolchainConfig:
        """Get or load the tool configuration (lazy initialization)."""
        if self._toolchain is None:
            path = Path(self.settings.config_file) if self.settings.config_file else None
            self._toolchain = load_config(path)
        return self._toolchain
