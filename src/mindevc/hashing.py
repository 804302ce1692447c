"""
SHA-256 helpers for the content-addressed cache.

Digests are always lowercase hex without a ``sha256:`` prefix, which is the
format used both for cache file names and for the ``hash`` field of tool
archives in the configuration.
"""
from __future__ import annotations

import hashlib
import re
from pathlib import Path

__all__ = ["CHUNK_SIZE", "is_sha256", "sha256_file", "verify_file"]

CHUNK_SIZE = 1024 * 1024  # 1 MiB

_SHA256_RE = re.compile(r"[a-f0-9]{64}")


def is_sha256(value: str) -> bool:
    """Return True if value is 64 lowercase hex characters."""
    return bool(_SHA256_RE.fullmatch(value))


def sha256_file(path: Path) -> str:
    """
    Compute the SHA-256 digest of a file by streaming it in chunks.

    Args:
        path: File to hash

    Returns:
        Lowercase hex digest

    Raises:
        OSError: If the file cannot be read
    """
    hash_obj = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(CHUNK_SIZE)
            if not chunk:
                break
            hash_obj.update(chunk)
    return hash_obj.hexdigest()


def verify_file(path: Path, expected_sha: str) -> bool:
    """Check that the content of path hashes to expected_sha."""
    return sha256_file(path) == expected_sha
