"""
Symlink publication.

Projects extracted files onto the well-known link paths declared for a tool.
Publication is always a destructive replace: whatever exists at a link path
is removed before the new symlink is created.
"""
from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path
from typing import Iterable, List

from .errors import PublishError
from .extractor import Extraction
from .models import ExtractedArtifact, LinkSpec, LinkTarget, RelativePath

__all__ = ["SymlinkPublisher", "resolve_link_target"]

logger = logging.getLogger(__name__)

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def resolve_link_target(extraction: Extraction, target: LinkTarget) -> Path:
    """Filesystem path a link target refers to."""
    if isinstance(target, ExtractedArtifact):
        return extraction.artifact
    if isinstance(target, RelativePath):
        return extraction.root / target.path
    raise TypeError(f"Unknown link target: {target!r}")


class SymlinkPublisher:
    """Create or replace the symlinks of an extracted tool."""

    def publish(self, extraction: Extraction, links: Iterable[LinkSpec]) -> List[Path]:
        """
        Publish links for an extraction.

        Args:
            extraction: Result of extracting the tool
            links: Links to create

        Returns:
            Paths of the created symlinks, in order

        Raises:
            PublishError: If a stale entry cannot be removed or a link cannot be created
        """
        created: List[Path] = []
        for link in links:
            target = resolve_link_target(extraction, link.target)

            if isinstance(link.target, ExtractedArtifact):
                _make_executable(target)

            _replace_symlink(link.path, target)
            logger.debug(f"Created symlink {link.path} -> {target}")
            created.append(link.path)
        return created


def _make_executable(path: Path) -> None:
    try:
        mode = path.stat().st_mode
        os.chmod(path, mode | _EXEC_BITS)
    except OSError as e:
        raise PublishError(f"Failed to make {path} executable: {e}") from e


def _replace_symlink(link_path: Path, target: Path) -> None:
    """Remove whatever is at link_path, then point it at target."""
    try:
        link_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PublishError(f"Failed to create directory for symlink {link_path}: {e}") from e

    try:
        if link_path.is_symlink() or link_path.is_file():
            link_path.unlink()
        elif link_path.is_dir():
            shutil.rmtree(link_path)
        elif os.path.lexists(link_path):
            link_path.unlink()
    except OSError as e:
        raise PublishError(f"Failed to remove existing entry at {link_path}: {e}") from e

    try:
        os.symlink(target, link_path)
    except OSError as e:
        raise PublishError(f"Failed to create symlink {link_path} -> {target}: {e}") from e
