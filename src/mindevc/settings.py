"""
Settings and configuration for mindevc.

Centralizes runtime settings and provides validation with fail-fast behavior.
Loads settings from environment variables; the tool registry itself lives in
the YAML configuration (see config.py).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from . import __version__

__all__ = ["Settings", "create_settings_from_env"]


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for mindevc.

    Attributes:
        config_file: Explicit configuration file (None = search default locations)
        cache_dir: Override for the configuration's cache_dir
        http_timeout_s: HTTP timeout in seconds for archive downloads
        user_agent: User-Agent header sent with downloads
    """
    config_file: Optional[str] = None
    cache_dir: Optional[str] = None
    http_timeout_s: float = 60.0
    user_agent: str = f"mindevc/{__version__}"

    def __post_init__(self):
        """Validate settings on construction."""
        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if not self.user_agent or not self.user_agent.strip():
            raise ValueError("user_agent must not be empty")

        if self.cache_dir is not None and not self.cache_dir.strip():
            raise ValueError("cache_dir must not be empty when set")


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - MINDEVC_CONFIG (optional)
        - MINDEVC_CACHE_DIR (optional)
        - MINDEVC_HTTP_TIMEOUT (default: 60.0)
        - MINDEVC_USER_AGENT (default: mindevc/<version>)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        if not value:
            return default
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"{key} must be a number, got '{value}'") from None

    return Settings(
        config_file=os.getenv("MINDEVC_CONFIG") or None,
        cache_dir=os.getenv("MINDEVC_CACHE_DIR") or None,
        http_timeout_s=get_float("MINDEVC_HTTP_TIMEOUT", 60.0),
        user_agent=os.getenv("MINDEVC_USER_AGENT") or f"mindevc/{__version__}",
    )
