"""Utility modules for artifact fetching."""

from .exceptions import (
    ArchiveFormatError,
    ArtifactFetchError,
    ArtifactNotFoundError,
    ChecksumMismatchError,
    FetchTimeoutError,
    FilesystemError,
    HttpStatusError,
    MetadataParseError,
    NetworkError,
    RequestBuildError,
    UnsafeArchiveEntryError,
)
from .agent import build_user_agent

__all__ = [
    "ArchiveFormatError",
    "ArtifactFetchError",
    "ArtifactNotFoundError",
    "ChecksumMismatchError",
    "FetchTimeoutError",
    "FilesystemError",
    "HttpStatusError",
    "MetadataParseError",
    "NetworkError",
    "RequestBuildError",
    "UnsafeArchiveEntryError",
    "build_user_agent",
]
