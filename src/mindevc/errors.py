"""
Error classes for the tool acquisition pipeline.

Every stage raises a subclass of :class:`MindevcError` so callers can handle
pipeline failures uniformly. The orchestrator wraps stage errors in
:class:`ToolInstallError`, which records the tool and stage and chains the
original exception as ``__cause__``.
"""
from __future__ import annotations


class MindevcError(Exception):
    """Base class for all mindevc errors."""
    pass


class ConfigError(MindevcError):
    """
    Configuration could not be loaded.

    Raised when:
    - An explicitly requested config file does not exist
    - The YAML is malformed or fails model validation
    """
    pass


class DownloadError(MindevcError):
    """
    Fetching an archive failed.

    Raised when:
    - The server answers with a non-2xx status
    - The response body is empty
    - The transport fails (DNS, connection reset, timeout)
    - The URL scheme is not http or https
    """
    pass


class IntegrityError(MindevcError):
    """
    Downloaded content does not hash to the expected digest.

    Unverified content is never kept under its canonical cache name.
    """

    def __init__(self, message: str, expected: str | None = None, actual: str | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class ArchiveFormatError(MindevcError):
    """Archive encoding is not one of the supported encodings."""
    pass


class ExtractionError(MindevcError):
    """
    Archive could not be unpacked.

    Raised when:
    - The archive is unreadable, truncated or fails to decompress
    - A member would be written outside the extraction directory
    - Writing an extracted file fails
    """
    pass


class PublishError(MindevcError):
    """A stale link could not be removed or a new symlink could not be created."""
    pass


class ToolInstallError(MindevcError):
    """
    A tool failed in one of the pipeline stages.

    Attributes:
        tool: Name of the tool being installed
        stage: "download", "extract" or "publish"
    """

    def __init__(self, tool: str, stage: str, cause: BaseException):
        super().__init__(f"{tool}: {stage} failed: {cause}")
        self.tool = tool
        self.stage = stage


__all__ = [
    "MindevcError",
    "ConfigError",
    "DownloadError",
    "IntegrityError",
    "ArchiveFormatError",
    "ExtractionError",
    "PublishError",
    "ToolInstallError",
]
