"""
Content-addressed downloader.

Archives are cached under a file named after their expected SHA-256 digest.
A cached file is re-hashed on every reuse, and fresh downloads are streamed to
a temporary file that only replaces the canonical name once the digest has
been verified.
"""
from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import httpx

from .errors import DownloadError, IntegrityError
from .hashing import CHUNK_SIZE, sha256_file
from .settings import Settings

__all__ = ["ContentAddressedDownloader", "SUPPORTED_SCHEMES"]

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = ("http", "https")


class ContentAddressedDownloader:
    """
    Fetch URLs into a cache keyed by content digest.

    The downloader never retries; retry policy belongs to the caller. Use it
    as a context manager, or call close(), to release the HTTP client when it
    was created here.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        """
        Initialize the downloader.

        Args:
            settings: Runtime settings (timeout, user agent); defaults apply when None
            client: HTTP client to use (injected by tests); created from settings when None
        """
        settings = settings or Settings()
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(settings.http_timeout_s, connect=10.0),
            follow_redirects=True,
            headers={"User-Agent": settings.user_agent},
        )

    def __enter__(self) -> ContentAddressedDownloader:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def fetch(self, dest_dir: Path, url: str, expected_sha: str) -> Path:
        """
        Return the cached file for expected_sha, downloading url on a miss.

        Args:
            dest_dir: Cache directory (created if missing)
            url: http(s) URL of the archive
            expected_sha: Expected SHA-256 (64 hex chars, no prefix)

        Returns:
            Path to dest_dir/<expected_sha>

        Raises:
            DownloadError: Bad status, empty body, transport error or unsupported URL
            IntegrityError: Downloaded content does not match expected_sha
            OSError: Cache directory cannot be written
        """
        dest_dir = Path(dest_dir)
        cached = dest_dir / expected_sha

        if cached.exists():
            actual_sha = sha256_file(cached)
            if actual_sha == expected_sha:
                logger.debug(f"Using cached file {cached}")
                return cached
            logger.warning(f"Cached file {cached} is corrupt (got {actual_sha}), downloading again")
            cached.unlink()

        try:
            scheme = urlparse(url).scheme
        except ValueError as e:
            raise DownloadError(f"Invalid URL '{url}': {e}") from e
        if scheme not in SUPPORTED_SCHEMES:
            raise DownloadError(f"Unsupported URL scheme '{scheme}' for {url}")

        dest_dir.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(prefix=f"{expected_sha}.", suffix=".tmp", dir=dest_dir)
        temp_path = Path(temp_name)

        try:
            with os.fdopen(fd, "wb") as out:
                actual_sha, size = self._stream_to(out, url)
                out.flush()
                os.fsync(out.fileno())

            if size == 0:
                raise DownloadError(f"Got empty file from {url}")

            if actual_sha != expected_sha:
                raise IntegrityError(
                    f"SHA mismatch for {url}: expected {expected_sha}, got {actual_sha}",
                    expected=expected_sha,
                    actual=actual_sha,
                )

            os.replace(temp_path, cached)

        except Exception:
            # Never leave partial downloads behind
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass
            raise

        logger.info(f"Downloaded {url} ({size} bytes)")
        return cached

    def _stream_to(self, out, url: str) -> tuple[str, int]:
        """Stream the body of url into out, returning (sha256, size)."""
        hash_obj = hashlib.sha256()
        size = 0
        logger.debug(f"GET {url}")
        try:
            with self.client.stream("GET", url) as response:
                if not response.is_success:
                    raise DownloadError(f"Bad status for {url}: {response.status_code} {response.reason_phrase}")
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    hash_obj.update(chunk)
                    out.write(chunk)
                    size += len(chunk)
        except httpx.HTTPError as e:
            raise DownloadError(f"Network error downloading {url}: {e}") from e
        return hash_obj.hexdigest(), size
