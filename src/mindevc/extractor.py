"""
Archive extraction.

Unpacks a verified cache entry into the per-architecture extraction directory
of a tool. Tar and zip archives become a directory tree; raw binaries (bin and
bin.gz/bin.bz2/bin.xz) become a single executable named after the tool.
"""
from __future__ import annotations

import bz2
import gzip
import hashlib
import logging
import lzma
import os
import shutil
import stat
import tarfile
import tempfile
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, Dict, Union

from .errors import ExtractionError
from .hashing import CHUNK_SIZE, sha256_file
from .models import ArchiveEncoding
from .path_safety import member_path

__all__ = [
    "Extraction",
    "ArchiveExtractor",
    "extraction_dir_for",
    "UNCOMPRESSED_SUFFIX",
    "PAYLOAD_DIGEST_SUFFIX",
]

logger = logging.getLogger(__name__)

# Sibling of a cached bin.* archive holding its decompressed payload
UNCOMPRESSED_SUFFIX = ".unc"
# Sibling of the payload recording its SHA-256
PAYLOAD_DIGEST_SUFFIX = ".sha256"

BINARY_MODE = 0o755
DEFAULT_DIR_MODE = 0o755
DEFAULT_FILE_MODE = 0o644

_DECOMPRESSORS: Dict[str, Callable[..., IO[bytes]]] = {
    "gz": gzip.open,
    "bz2": bz2.open,
    "xz": lzma.open,
}

# Errors raised by tarfile/zipfile and the decompressors on bad input
_ARCHIVE_ERRORS = (
    tarfile.TarError,
    zipfile.BadZipFile,
    zipfile.LargeZipFile,
    lzma.LZMAError,
    zlib.error,
    EOFError,
    OSError,
    # zipfile: unsupported compression method (NotImplementedError), encrypted entry
    RuntimeError,
)


@dataclass(frozen=True)
class Extraction:
    """
    Result of extracting one tool archive.

    Attributes:
        root: Extraction directory of the tool
        artifact: The tool's single binary for bin-family archives, root otherwise
    """
    root: Path
    artifact: Path


def extraction_dir_for(archive_file: Path, arch: str, tool_name: str) -> Path:
    """
    Deterministic extraction directory for a cached archive.

    The cache lives in <cache>/tools/_download, so extractions land in
    <cache>/tools/<arch>/<tool_name>.
    """
    return Path(archive_file).parent.parent / arch / tool_name


def _check_component(kind: str, value: str) -> None:
    if not value or value in (".", "..") or "/" in value or "\\" in value or "\x00" in value:
        raise ExtractionError(f"invalid {kind} for extraction directory: {value!r}")


class ArchiveExtractor:
    """Extract archives of any supported encoding."""

    def extract(self, tool_name: str, arch: str, encoding: Union[str, ArchiveEncoding],
                archive_file: Path) -> Extraction:
        """
        Extract archive_file for tool_name.

        Re-running with the same input reaches the same end state; existing
        files are replaced.

        Args:
            tool_name: Tool name (names the extraction directory and raw binaries)
            arch: Architecture tag
            encoding: Archive encoding (string values are parsed)
            archive_file: Verified cache entry

        Returns:
            Extraction with the extraction directory and the tool artifact

        Raises:
            ArchiveFormatError: If encoding is not supported
            ExtractionError: If the archive cannot be read or written out
        """
        encoding = ArchiveEncoding.parse(encoding)
        _check_component("tool name", tool_name)
        _check_component("architecture", arch)

        archive_file = Path(archive_file)
        root = extraction_dir_for(archive_file, arch, tool_name)
        logger.debug(f"Extracting {archive_file} ({encoding.value}) into {root}")

        try:
            root.mkdir(parents=True, exist_ok=True)

            if encoding.is_tar:
                self._extract_tar(archive_file, root, encoding)
                return Extraction(root=root, artifact=root)
            elif encoding is ArchiveEncoding.ZIP:
                self._extract_zip(archive_file, root)
                return Extraction(root=root, artifact=root)
            elif encoding is ArchiveEncoding.BIN:
                artifact = root / tool_name
                _install_file(archive_file, artifact, BINARY_MODE)
                return Extraction(root=root, artifact=artifact)
            elif encoding.is_compressed:
                artifact = root / tool_name
                payload = self._decompressed_payload(archive_file, encoding)
                _install_file(payload, artifact, BINARY_MODE)
                return Extraction(root=root, artifact=artifact)
            raise ExtractionError(f"No extraction strategy for {encoding.value}")

        except ExtractionError:
            raise
        except ValueError as e:
            # Unsafe member names from path_safety
            raise ExtractionError(f"Failed to extract {encoding.value} archive {archive_file}: {e}") from e
        except _ARCHIVE_ERRORS as e:
            raise ExtractionError(f"Failed to extract {encoding.value} archive {archive_file}: {e}") from e

    def _extract_tar(self, archive_file: Path, root: Path, encoding: ArchiveEncoding) -> None:
        """Decompress and stream tar members into root."""
        opener = _DECOMPRESSORS[encoding.compression]
        with opener(archive_file, "rb") as stream:
            with tarfile.open(fileobj=stream, mode="r|") as tar:
                for member in tar:
                    target = member_path(root, member.name)
                    if member.isdir():
                        _make_dir(target, member.mode & 0o7777)
                    elif member.isfile():
                        src = tar.extractfile(member)
                        if src is None:
                            raise ExtractionError(f"Cannot read tar member {member.name}")
                        with src:
                            _write_file(target, src, (member.mode & 0o7777) or DEFAULT_FILE_MODE)
                    else:
                        logger.debug(f"Skipping tar member {member.name} (type {member.type!r})")

    def _extract_zip(self, archive_file: Path, root: Path) -> None:
        """Stream zip entries into root, keeping their stored Unix modes."""
        with zipfile.ZipFile(archive_file) as zf:
            for info in zf.infolist():
                target = member_path(root, info.filename)
                unix_mode = info.external_attr >> 16
                mode = unix_mode & 0o7777

                if info.is_dir():
                    _make_dir(target, mode)
                    continue

                if stat.S_ISLNK(unix_mode):
                    logger.debug(f"Skipping zip symlink {info.filename}")
                    continue

                with zf.open(info) as src:
                    _write_file(target, src, mode or DEFAULT_FILE_MODE)

    def _decompressed_payload(self, archive_file: Path, encoding: ArchiveEncoding) -> Path:
        """
        Decompress a bin.* archive once, caching the result next to it.

        The payload is written atomically to <archive_file>.unc and its
        SHA-256 to <archive_file>.unc.sha256. A cached payload is only reused
        when it still hashes to the recorded digest; otherwise the archive is
        decompressed again.
        """
        unc = archive_file.with_name(archive_file.name + UNCOMPRESSED_SUFFIX)
        digest_file = unc.with_name(unc.name + PAYLOAD_DIGEST_SUFFIX)
        if unc.exists():
            recorded = digest_file.read_text().strip() if digest_file.is_file() else None
            if recorded is not None and sha256_file(unc) == recorded:
                logger.debug(f"Using decompressed payload {unc}")
                return unc
            logger.warning(f"Decompressed payload {unc} does not match its recorded digest, decompressing again")

        opener = _DECOMPRESSORS[encoding.compression]
        fd, temp_name = tempfile.mkstemp(prefix=f"{archive_file.name}.", suffix=".tmp", dir=archive_file.parent)
        temp_path = Path(temp_name)
        hash_obj = hashlib.sha256()
        try:
            with os.fdopen(fd, "wb") as out, opener(archive_file, "rb") as src:
                while True:
                    chunk = src.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    hash_obj.update(chunk)
                    out.write(chunk)
            os.replace(temp_path, unc)
        except Exception:
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass
            raise
        digest_file.write_text(hash_obj.hexdigest() + "\n")
        return unc


def _make_dir(target: Path, mode: int) -> None:
    """Create target, applying a stored mode exactly."""
    target.mkdir(mode=mode or DEFAULT_DIR_MODE, parents=True, exist_ok=True)
    if mode:
        os.chmod(target, mode)


def _write_file(target: Path, src: IO[bytes], mode: int) -> None:
    """Write src to target with mode, replacing any existing file."""
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.is_symlink() or target.is_file():
        target.unlink()
    fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "wb") as out:
        shutil.copyfileobj(src, out, CHUNK_SIZE)
    # os.open honours the umask; apply the stored mode exactly
    os.chmod(target, mode)


def _install_file(source: Path, target: Path, mode: int) -> None:
    """Copy source to target atomically with mode."""
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "wb") as out, open(source, "rb") as src:
            shutil.copyfileobj(src, out, CHUNK_SIZE)
        os.chmod(temp_path, mode)
        os.replace(temp_path, target)
    except Exception:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        raise
