"""
Tool pipeline orchestration.

Runs download -> extract -> publish for each requested tool. Gaps in the
registry (unknown tool, unimplemented source, no archive for the current
architecture, unparseable URL or unsupported URL scheme) are skipped with a
diagnostic; any failure inside a stage aborts the whole run.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional
from urllib.parse import urlparse

from .downloader import SUPPORTED_SCHEMES, ContentAddressedDownloader
from .errors import MindevcError, ToolInstallError
from .extractor import ArchiveExtractor, Extraction
from .models import ToolSource, ToolSpec, normalize_arch
from .publisher import SymlinkPublisher

__all__ = [
    "DOWNLOAD_DIR_NAME",
    "Diagnostic",
    "ToolOutcome",
    "PipelineResult",
    "ToolPipeline",
    "download_dir_for",
]

# <cache>/tools/_download holds the content-addressed archives
DOWNLOAD_DIR_NAME = "_download"


def download_dir_for(cache_dir: Path) -> Path:
    return Path(cache_dir) / "tools" / DOWNLOAD_DIR_NAME


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal message about a skipped tool."""
    tool: str
    message: str


@dataclass(frozen=True)
class ToolOutcome:
    """Artifacts produced for an installed tool."""
    tool: str
    archive_path: Path
    extraction: Extraction
    links: List[Path]


@dataclass
class PipelineResult:
    """
    Outcome of a pipeline run.

    Only produced when every attempted tool succeeded; a stage failure raises
    ToolInstallError instead.
    """
    arch: str
    installed: Dict[str, ToolOutcome] = field(default_factory=dict)
    skipped: Dict[str, str] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def downloaded(self) -> List[Path]:
        """Cached archive paths of installed tools, in processing order."""
        return [outcome.archive_path for outcome in self.installed.values()]


class ToolPipeline:
    """
    Install tools from a registry into a cache directory.

    Processing is strictly sequential, one tool at a time. Concurrent runs
    against the same cache directory must be serialized by the caller.
    """

    def __init__(self, downloader: ContentAddressedDownloader,
                 extractor: Optional[ArchiveExtractor] = None,
                 publisher: Optional[SymlinkPublisher] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the pipeline.

        Args:
            downloader: Content-addressed downloader
            extractor: Archive extractor (default ArchiveExtractor())
            publisher: Symlink publisher (default SymlinkPublisher())
            logger: Logger for progress and diagnostics (default: this module's logger)
        """
        self.downloader = downloader
        self.extractor = extractor or ArchiveExtractor()
        self.publisher = publisher or SymlinkPublisher()
        self.log = logger or logging.getLogger(__name__)

    def run(self, cache_dir: Path, arch: str, tool_names: Iterable[str],
            registry: Mapping[str, ToolSpec]) -> PipelineResult:
        """
        Install tool_names for arch.

        Args:
            cache_dir: Cache root; archives go to <cache_dir>/tools/_download
            arch: Target architecture
            tool_names: Tools to install, processed in order
            registry: Tool registry (read only)

        Returns:
            PipelineResult with installed and skipped tools

        Raises:
            ToolInstallError: First stage failure; the run stops there
            OSError: If the download directory cannot be created
        """
        arch = normalize_arch(arch)
        download_dir = download_dir_for(cache_dir)
        download_dir.mkdir(mode=0o750, parents=True, exist_ok=True)

        result = PipelineResult(arch=arch)
        self.log.debug(f"Installing tools for {arch} into {cache_dir}")

        for name in tool_names:
            if name in result.installed or name in result.skipped:
                continue

            tool = registry.get(name)
            if tool is None:
                self._skip(result, name, "tool does not exist in the registry")
                continue

            if tool.source is not ToolSource.ARCHIVE:
                self._skip(result, name, f"'{tool.source.value}' tool source is not implemented")
                continue

            archive = tool.archive_for(arch)
            if archive is None:
                self._skip(result, name, f"no archive for architecture {arch}")
                continue

            try:
                scheme = urlparse(archive.url).scheme
            except ValueError as e:
                self._skip(result, name, f"invalid URL '{archive.url}': {e}")
                continue
            if scheme not in SUPPORTED_SCHEMES:
                self._skip(result, name, f"unsupported URL scheme '{scheme}'")
                continue

            stage = "download"
            try:
                archive_path = self.downloader.fetch(download_dir, archive.url, archive.sha256)
                stage = "extract"
                extraction = self.extractor.extract(name, arch, archive.encoding, archive_path)
                stage = "publish"
                links = self.publisher.publish(extraction, archive.link_specs)
            except (MindevcError, OSError) as e:
                self.log.error(f"Failed to install {name} ({stage}): {e}")
                raise ToolInstallError(name, stage, e) from e

            result.installed[name] = ToolOutcome(
                tool=name,
                archive_path=archive_path,
                extraction=extraction,
                links=links,
            )
            self.log.info(f"Installed {name}")

        return result

    def _skip(self, result: PipelineResult, name: str, reason: str) -> None:
        self.log.warning(f"Skipping {name}: {reason}")
        result.skipped[name] = reason
        result.diagnostics.append(Diagnostic(tool=name, message=reason))
