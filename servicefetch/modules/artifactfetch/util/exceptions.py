"""Exceptions raised while resolving, fetching and unpacking artifacts."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class ArtifactFetchError(Exception):
    """Base class for every failure reported by the artifact fetch module."""


class RequestBuildError(ArtifactFetchError):
    """The outbound request could not be constructed (bad URL, bad headers)."""


class NetworkError(ArtifactFetchError):
    """Transport-level failure talking to the repository."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"request to {url} failed: {reason}")
        self.url = url
        self.reason = reason


class HttpStatusError(ArtifactFetchError):
    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"http GET {url} failed with status {status_code}, expected 200")
        self.url = url
        self.status_code = status_code


class MetadataParseError(ArtifactFetchError):
    """maven-metadata.xml was malformed or incomplete."""


class ArtifactNotFoundError(ArtifactFetchError):
    def __init__(self, artifact: str, attempted: Sequence[str] = ()) -> None:
        super().__init__(f"failed to find maven-metadata.xml for {artifact}")
        self.artifact = artifact
        self.attempted = list(attempted)


class FetchTimeoutError(ArtifactFetchError, TimeoutError):
    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(f"http GET {url} did not complete within {timeout:g}s")
        self.url = url
        self.timeout = timeout


class ChecksumMismatchError(ArtifactFetchError):
    def __init__(self, url: str, expected: str, actual: str) -> None:
        super().__init__(f"md5 did not match for {url}, {actual} != {expected}")
        self.url = url
        self.expected = expected
        self.actual = actual


class ArchiveFormatError(ArtifactFetchError):
    """The payload is not a readable gzip-compressed tar archive."""


class FilesystemError(ArtifactFetchError):
    """Creating a directory or writing a file during extraction failed."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class UnsafeArchiveEntryError(FilesystemError):
    """An archive entry points outside of the output directory."""
