"""
Configuration loading for mindevc.

Finds the YAML configuration file, validates it into a ToolchainConfig and
layers it over the built-in tool registry.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .errors import ConfigError
from .models import ToolchainConfig

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_CACHE_DIR",
    "DEFAULT_LINK_DIR",
    "default_tools",
    "default_config",
    "find_config_file",
    "load_config",
]

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "mindevc.yaml"
DEFAULT_CACHE_DIR = "~/.cache/mindevc"
DEFAULT_LINK_DIR = "/opt/mindevc/bin"


def _archive(url: str, sha256: str, encoding: str, links: Dict[str, str]) -> Dict[str, Any]:
    return {"url": url, "hash": sha256, "type": encoding, "links": links}


def default_tools() -> Dict[str, Any]:
    """Built-in tool registry in configuration file form."""
    bin_dir = DEFAULT_LINK_DIR
    return {
        "fd": {
            "source": "archive",
            "archives": {
                "x86_64": _archive(
                    "https://github.com/sharkdp/fd/releases/download/v10.2.0/fd-v10.2.0-x86_64-unknown-linux-musl.tar.gz",
                    "d9bfa25ec28624545c222992e1b00673b7c9ca5eb15393c40369f10b28f9c932",
                    "tar.gz",
                    {f"{bin_dir}/fd": "fd-v10.2.0-x86_64-unknown-linux-musl/fd"},
                ),
                "aarch64": _archive(
                    "https://github.com/sharkdp/fd/releases/download/v10.2.0/fd-v10.2.0-aarch64-unknown-linux-musl.tar.gz",
                    "4e8e596646d047d904f2c5ca74b39dccc69978b6e1fb101094e534b0b59c1bb0",
                    "tar.gz",
                    {f"{bin_dir}/fd": "fd-v10.2.0-aarch64-unknown-linux-musl/fd"},
                ),
            },
        },
        "ripgrep": {
            "source": "archive",
            "archives": {
                "x86_64": _archive(
                    "https://github.com/BurntSushi/ripgrep/releases/download/14.1.1/ripgrep-14.1.1-x86_64-unknown-linux-musl.tar.gz",
                    "4cf9f2741e6c465ffdb7c26f38056a59e2a2544b51f7cc128ef28337eeae4d8e",
                    "tar.gz",
                    {f"{bin_dir}/rg": "ripgrep-14.1.1-x86_64-unknown-linux-musl/rg"},
                ),
                "aarch64": _archive(
                    "https://github.com/BurntSushi/ripgrep/releases/download/14.1.1/ripgrep-14.1.1-armv7-unknown-linux-musleabi.tar.gz",
                    "e6512cb9d3d53050022b9236edd2eff4244cea343a451bfb3c008af23d0000e5",
                    "tar.gz",
                    {f"{bin_dir}/rg": "ripgrep-14.1.1-armv7-unknown-linux-musleabi/rg"},
                ),
            },
        },
        "gosu": {
            "source": "archive",
            "archives": {
                "x86_64": _archive(
                    "https://github.com/tianon/gosu/releases/download/1.17/gosu-amd64",
                    "bbc4136d03ab138b1ad66fa4fc051bafc6cc7ffae632b069a53657279a450de3",
                    "bin",
                    {f"{bin_dir}/gosu": "$bin"},
                ),
                "aarch64": _archive(
                    "https://github.com/tianon/gosu/releases/download/1.17/gosu-arm64",
                    "c3805a85d17f4454c23d7059bcb97e1ec1af272b90126e79ed002342de08389b",
                    "bin",
                    {f"{bin_dir}/gosu": "$bin"},
                ),
            },
        },
        "curl": {
            "source": "archive",
            "archives": {
                "x86_64": _archive(
                    "https://github.com/stunnel/static-curl/releases/download/8.14.1/curl-linux-x86_64-musl-8.14.1.tar.xz",
                    "0b4622d9df4fd282b5a2d222e4e0146fc409053ee15ee1979784f6c8a56cf573",
                    "tar.xz",
                    {f"{bin_dir}/curl": "curl", f"{bin_dir}/trurl": "trurl"},
                ),
                "aarch64": _archive(
                    "https://github.com/stunnel/static-curl/releases/download/8.14.1/curl-linux-aarch64-musl-8.14.1.tar.xz",
                    "e0fecb5ecaba101b4b560f1035835770e7d1c151416ee84e18c813ba32b9d1dd",
                    "tar.xz",
                    {f"{bin_dir}/curl": "curl", f"{bin_dir}/trurl": "trurl"},
                ),
            },
        },
        "zig": {
            "source": "archive",
            "archives": {
                "x86_64": _archive(
                    "https://ziglang.org/download/0.14.1/zig-x86_64-linux-0.14.1.tar.xz",
                    "24aeeec8af16c381934a6cd7d95c807a8cb2cf7df9fa40d359aa884195c4716c",
                    "tar.xz",
                    {f"{bin_dir}/zig": "zig-x86_64-linux-0.14.1/zig"},
                ),
                "aarch64": _archive(
                    "https://ziglang.org/download/0.14.1/zig-aarch64-linux-0.14.1.tar.xz",
                    "f7a654acc967864f7a050ddacfaa778c7504a0eca8d2b678839c21eea47c992b",
                    "tar.xz",
                    {f"{bin_dir}/zig": "zig-aarch64-linux-0.14.1/zig"},
                ),
            },
        },
        "make": {
            "source": "archive",
            "archives": {
                "x86_64": _archive(
                    "https://github.com/davidrios/static-make/releases/download/v4.4.1+1/make-x86_64-linux-musl.gz",
                    "b6a734830c6be3bfc7e0a2f39b4923059132df1439c72c7a03ab65f4df610bb9",
                    "bin.gz",
                    {f"{bin_dir}/make": "$bin"},
                ),
                "aarch64": _archive(
                    "https://github.com/davidrios/static-make/releases/download/v4.4.1+1/make-aarch64-linux-musl.gz",
                    "13f1311198ba6826d92ee6b7c0d6406a27db441b1171598c075bf44dfceee2f9",
                    "bin.gz",
                    {f"{bin_dir}/make": "$bin"},
                ),
            },
        },
    }


def default_config() -> ToolchainConfig:
    """Configuration used when no config file is found."""
    tools = default_tools()
    return ToolchainConfig.model_validate({
        "cache_dir": DEFAULT_CACHE_DIR,
        "install_tools": list(tools.keys()),
        "tools": tools,
    })


def find_config_file(cwd: Optional[Path] = None, home: Optional[Path] = None) -> Optional[Path]:
    """
    Locate the configuration file.

    Search order:
    1. ./.mindevc.yaml
    2. ./.devcontainer/mindevc.yaml
    3. ~/.config/mindevc.yaml

    Returns:
        First existing candidate, or None
    """
    cwd = cwd or Path.cwd()
    home = home or Path.home()
    candidates = [
        cwd / f".{CONFIG_FILE_NAME}",
        cwd / ".devcontainer" / CONFIG_FILE_NAME,
        home / ".config" / CONFIG_FILE_NAME,
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
        logger.debug(f"No config file at {candidate}")
    return None


def load_config(path: Optional[Path] = None, *, cwd: Optional[Path] = None,
                home: Optional[Path] = None) -> ToolchainConfig:
    """
    Load the effective configuration.

    File values override the defaults key by key. Entries under ``tools``
    replace built-in tools of the same name; built-ins not mentioned in the
    file stay available.

    Args:
        path: Explicit config file (must exist); searched for when None
        cwd: Directory to search from (defaults to the current directory)
        home: Home directory used for ~/.config (defaults to the user's home)

    Returns:
        Validated ToolchainConfig

    Raises:
        ConfigError: If the file is missing, malformed or invalid
    """
    import yaml

    if path is not None:
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        config_path: Optional[Path] = path
    else:
        config_path = find_config_file(cwd=cwd, home=home)

    base = default_config().model_dump(mode="json", by_alias=True)
    if config_path is None:
        logger.debug("Using built-in configuration")
        return ToolchainConfig.model_validate(base)

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    merged = dict(base)
    for key, value in data.items():
        if key == "tools" and isinstance(value, dict):
            tools = dict(base["tools"])
            tools.update(value)
            merged["tools"] = tools
        else:
            merged[key] = value

    try:
        config = ToolchainConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    logger.debug(f"Loaded configuration from {config_path}")
    return config
