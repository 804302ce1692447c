"""
Data models for the tool registry.

These Pydantic models describe which archive to fetch for each tool and
architecture, how it is encoded, and where its files get published. They are
parsed from the YAML configuration and are read-only for the pipeline.
"""
from __future__ import annotations

import platform
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ArchiveFormatError
from .hashing import is_sha256
from .path_safety import safe_relpath

__all__ = [
    "X86_64",
    "AARCH64",
    "BIN_SENTINEL",
    "ArchiveEncoding",
    "normalize_arch",
    "detect_architecture",
    "RelativePath",
    "ExtractedArtifact",
    "LinkTarget",
    "LinkSpec",
    "parse_link_target",
    "ArchiveSpec",
    "ToolSource",
    "ToolSpec",
    "ToolchainConfig",
]

# Known architectures; any other non-empty tag is accepted as-is
X86_64 = "x86_64"
AARCH64 = "aarch64"

_ARCH_ALIASES = {
    "amd64": X86_64,
    "x64": X86_64,
    "arm64": AARCH64,
}

# Link target meaning "the tool's single extracted file"
BIN_SENTINEL = "$bin"


class ArchiveEncoding(str, Enum):
    """Container/compression format of a downloaded tool archive."""
    TAR_GZ = "tar.gz"
    TAR_BZ2 = "tar.bz2"
    TAR_XZ = "tar.xz"
    ZIP = "zip"
    BIN = "bin"
    BIN_GZ = "bin.gz"
    BIN_BZ2 = "bin.bz2"
    BIN_XZ = "bin.xz"

    @classmethod
    def parse(cls, value: Union[str, "ArchiveEncoding"]) -> "ArchiveEncoding":
        """Parse an encoding name, raising ArchiveFormatError for unknown values."""
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(e.value for e in cls)
            raise ArchiveFormatError(f"Unsupported archive type: {value}. Expected one of: {valid}") from None

    @property
    def is_tar(self) -> bool:
        """Payload is a tar stream extracted as a directory tree."""
        return self in (ArchiveEncoding.TAR_GZ, ArchiveEncoding.TAR_BZ2, ArchiveEncoding.TAR_XZ)

    @property
    def is_compressed(self) -> bool:
        """A gzip/bzip2/xz decompression stage runs before the tar or bin stage."""
        return self.compression is not None

    @property
    def compression(self) -> Optional[str]:
        """Compression suffix ("gz", "bz2", "xz") or None."""
        if self in (ArchiveEncoding.ZIP, ArchiveEncoding.BIN):
            return None
        return self.value.rsplit(".", 1)[1]


def normalize_arch(arch: str) -> str:
    """
    Normalize an architecture tag.

    Maps common aliases (amd64, arm64) onto the names used by `uname -m`.

    Raises:
        ValueError: If arch is empty
    """
    value = arch.strip().lower()
    if not value:
        raise ValueError("architecture must not be empty")
    return _ARCH_ALIASES.get(value, value)


def detect_architecture() -> str:
    """Return the normalized architecture of the current machine."""
    return normalize_arch(platform.machine())


@dataclass(frozen=True, slots=True)
class RelativePath:
    """Link target relative to the extraction directory."""
    path: str

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True, slots=True)
class ExtractedArtifact:
    """Link target that is the extracted tool binary itself."""

    def __str__(self) -> str:
        return BIN_SENTINEL


LinkTarget = Union[RelativePath, ExtractedArtifact]


def parse_link_target(value: str) -> LinkTarget:
    """
    Parse a link target from configuration.

    "$bin" selects the extracted artifact; anything else must be a safe path
    relative to the extraction directory.

    Raises:
        ValueError: If value is not a safe relative path
    """
    if value == BIN_SENTINEL:
        return ExtractedArtifact()
    return RelativePath(safe_relpath(value))


@dataclass(frozen=True, slots=True)
class LinkSpec:
    """A symlink to publish: absolute link path and where it points."""
    path: Path
    target: LinkTarget


class ArchiveSpec(BaseModel):
    """
    One downloadable artifact for a (tool, architecture) pair.

    Identity is the digest: two specs with different URLs but the same
    sha256 share one cache entry.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    url: str = Field(..., description="Download URL")
    sha256: str = Field(..., alias="hash", description="SHA-256 of the archive, lowercase hex")
    encoding: ArchiveEncoding = Field(..., alias="type", description="Archive encoding")
    links: Dict[str, str] = Field(default_factory=dict, description="Link path to path inside the extraction")

    @field_validator("sha256", mode="before")
    @classmethod
    def validate_sha256(cls, v):
        """Lowercase and check the digest format."""
        if not isinstance(v, str):
            raise ValueError("hash must be a string")
        value = v.strip().lower()
        if not is_sha256(value):
            raise ValueError(f"hash must be 64 hex chars, got '{v}'")
        return value

    @field_validator("links")
    @classmethod
    def validate_links(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Link paths must be absolute and targets safe."""
        for link_path, target in v.items():
            if not PurePosixPath(link_path).is_absolute():
                raise ValueError(f"link path must be absolute: {link_path}")
            parse_link_target(target)
        return v

    @property
    def link_specs(self) -> List[LinkSpec]:
        """Links as typed LinkSpec values, in declaration order."""
        return [LinkSpec(Path(p), parse_link_target(t)) for p, t in self.links.items()]


class ToolSource(str, Enum):
    """Where a tool comes from."""
    ARCHIVE = "archive"
    GIT_REPO = "git-repo"


class ToolSpec(BaseModel):
    """Registry entry for one tool: its source kind and per-architecture archives."""
    source: ToolSource = Field(default=ToolSource.ARCHIVE, description="Source kind")
    archives: Dict[str, ArchiveSpec] = Field(default_factory=dict, description="Architecture to archive")

    @field_validator("archives")
    @classmethod
    def normalize_archive_keys(cls, v: Dict[str, ArchiveSpec]) -> Dict[str, ArchiveSpec]:
        return {normalize_arch(arch): spec for arch, spec in v.items()}

    def archive_for(self, arch: str) -> Optional[ArchiveSpec]:
        """Archive for arch, or None if the tool has no artifact for it."""
        return self.archives.get(normalize_arch(arch))


class ToolchainConfig(BaseModel):
    """
    Tool installation configuration.

    Unknown top-level keys are ignored so the same file can carry settings
    for other parts of a devcontainer setup.
    """
    model_config = ConfigDict(extra="ignore")

    cache_dir: str = Field(default="~/.cache/mindevc", description="Cache root (supports ~/)")
    install_tools: List[str] = Field(default_factory=list, description="Tools installed by default")
    tools: Dict[str, ToolSpec] = Field(default_factory=dict, description="Tool registry")

    @property
    def cache_path(self) -> Path:
        """cache_dir with the home directory expanded."""
        return Path(self.cache_dir).expanduser()

    def to_yaml(self) -> str:
        """Render the configuration as YAML using the file field names."""
        import yaml

        data = self.model_dump(mode="json", by_alias=True)
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
