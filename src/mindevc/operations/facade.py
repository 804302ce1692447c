"""
Operations Facade - Application service layer.

Provides a clean interface between CLI and the tool pipeline, centralizing
configuration and policy decisions (cache location, architecture, which tools
to install) while keeping CLI commands thin and testable.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import httpx

from ..config import load_config
from ..downloader import ContentAddressedDownloader
from ..models import ToolchainConfig, detect_architecture
from ..pipeline import PipelineResult, ToolPipeline, download_dir_for
from ..settings import Settings


@dataclass(frozen=True)
class OpsConfig:
    """
    Configuration for Operations facade.

    Per-invocation policy that does not belong in Settings.
    """
    verbose: bool = False         # Show detailed output
    arch: Optional[str] = None    # Target architecture (None = this machine)
    cache_dir: Optional[str] = None  # Overrides settings and config file


class Operations:
    """
    Application service facade for CLI operations.

    One method per CLI verb. The facade holds injected settings, the loaded
    tool configuration and an optional HTTP client; exceptions bubble up for
    central mapping in run_and_exit.
    """

    def __init__(self, config: OpsConfig, settings: Optional[Settings] = None,
                 toolchain: Optional[ToolchainConfig] = None,
                 client: Optional[httpx.Client] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize Operations facade.

        Args:
            config: Per-invocation options
            settings: Runtime settings (if None, loaded from environment)
            toolchain: Tool configuration (if None, loaded from settings.config_file or discovered)
            client: HTTP client for downloads (if None, created from settings)
            logger: Logger handed to the pipeline
        """
        self.cfg = config

        if settings is None:
            from ..settings import create_settings_from_env
            settings = create_settings_from_env()
        self.settings = settings

        if toolchain is None:
            config_file = Path(settings.config_file) if settings.config_file else None
            toolchain = load_config(config_file)
        self.toolchain = toolchain

        self.client = client
        self.log = logger or logging.getLogger("mindevc")

    @property
    def cache_dir(self) -> Path:
        """Effective cache root: option > MINDEVC_CACHE_DIR > config file."""
        if self.cfg.cache_dir:
            return Path(self.cfg.cache_dir).expanduser()
        if self.settings.cache_dir:
            return Path(self.settings.cache_dir).expanduser()
        return self.toolchain.cache_path

    @property
    def arch(self) -> str:
        return self.cfg.arch or detect_architecture()

    def install(self, tool_names: Optional[Sequence[str]] = None) -> PipelineResult:
        """
        Download, extract and publish tools.

        Args:
            tool_names: Tools to install (None = install_tools from the configuration)

        Returns:
            PipelineResult of the run
        """
        names: List[str] = list(tool_names) if tool_names else list(self.toolchain.install_tools)
        with ContentAddressedDownloader(self.settings, client=self.client) as downloader:
            pipeline = ToolPipeline(downloader, logger=self.log)
            return pipeline.run(self.cache_dir, self.arch, names, self.toolchain.tools)

    def fetch(self, url: str, sha256: str, dest: Optional[str] = None) -> Path:
        """
        Download a single archive into the content-addressed cache.

        Args:
            url: Archive URL
            sha256: Expected SHA-256 (case-insensitive hex)
            dest: Directory to store into (default: the cache's download directory)

        Returns:
            Path of the cached file

        Raises:
            ValueError: If sha256 is not a valid digest
        """
        from ..hashing import is_sha256

        expected = sha256.strip().lower()
        if not is_sha256(expected):
            raise ValueError(f"sha256 must be 64 hex chars, got '{sha256}'")

        dest_dir = Path(dest).expanduser() if dest else download_dir_for(self.cache_dir)
        with ContentAddressedDownloader(self.settings, client=self.client) as downloader:
            return downloader.fetch(dest_dir, url, expected)

    def show_config(self) -> str:
        """Effective configuration as YAML."""
        return self.toolchain.to_yaml()
