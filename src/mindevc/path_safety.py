"""
Path safety utilities for mindevc.

Archive members and link targets come from downloaded content and user
configuration. These helpers make sure neither can point outside the
extraction directory.
"""
from __future__ import annotations

from pathlib import Path, PurePosixPath


def safe_relpath(path: str) -> str:
    """
    Validate and normalize a relative path inside an extraction directory.

    This function enforces the following safety rules:
    - No empty strings or "." (the extraction root is not a valid target)
    - No absolute paths (starting with '/')
    - No parent directory references ('..' components)
    - No backslashes or NUL bytes

    Args:
        path: Path string from configuration

    Returns:
        Normalized relative path safe for use

    Raises:
        ValueError: If path violates safety rules

    Examples:
        >>> safe_relpath("fd-v10.2.0/fd")
        'fd-v10.2.0/fd'

        >>> safe_relpath("../bin/sh")
        ValueError: unsafe path: ../bin/sh
    """
    rel = PurePosixPath(path)
    s = str(rel)
    if not s or s == ".":
        raise ValueError(f"unsafe path: {path}")
    if "\\" in s or "\x00" in s:
        raise ValueError(f"unsafe path: {path}")
    if rel.is_absolute() or ".." in rel.parts:
        raise ValueError(f"unsafe path: {path}")
    return s


def member_path(root: Path, name: str) -> Path:
    """
    Map an archive member name to a filesystem path confined under root.

    Leading "./" components and trailing slashes are tolerated since tar and
    zip tools commonly emit them. A member naming the archive root itself
    (for example "./") maps to root.

    Args:
        root: Extraction directory
        name: Member name as stored in the archive

    Returns:
        Path under root

    Raises:
        ValueError: If the member is absolute, climbs out of root or contains
            backslashes or NUL bytes
    """
    if "\\" in name or "\x00" in name:
        raise ValueError(f"unsafe archive member: {name!r}")
    rel = PurePosixPath(name)
    if rel.is_absolute() or ".." in rel.parts:
        raise ValueError(f"unsafe archive member: {name!r}")
    parts = [part for part in rel.parts if part != "."]
    return root.joinpath(*parts)
