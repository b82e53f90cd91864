"""Dataclasses describing one fetch/extract/install run."""

from __future__ import annotations

import hashlib
import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterator, Optional

from .artifact import VersionMetadata


@dataclass
class DownloadSession:
    """Per-download state; owned by a single fetch and dropped afterwards."""

    url: str
    timeout: float
    content_length: Optional[int] = None
    expected_md5: Optional[str] = None
    bytes_read: int = 0
    started_at: float = field(default_factory=time.monotonic)
    hasher: Any = field(default_factory=hashlib.md5, repr=False)

    @property
    def deadline(self) -> float:
        return self.started_at + self.timeout

    def expired(self) -> bool:
        return time.monotonic() > self.deadline

    def elapsed(self) -> float:
        return time.monotonic() - self.started_at

    def hexdigest(self) -> str:
        return self.hasher.hexdigest()


class TopLevelDirectories:
    """First path segments seen while writing files, with a file count each."""

    ROOT_MARKER = "."

    def __init__(self) -> None:
        self._counts: Counter = Counter()
        self.files_written = 0

    def record(self, relative_path: str) -> Optional[str]:
        self.files_written += 1
        parts = [part for part in PurePosixPath(relative_path).parts if part != self.ROOT_MARKER]
        if len(parts) < 2:
            return None
        top = parts[0]
        self._counts[top] += 1
        return top

    def count(self, name: str) -> int:
        return self._counts.get(name, 0)

    def counts(self) -> Dict[str, int]:
        return dict(sorted(self._counts.items()))

    def __contains__(self, name: object) -> bool:
        return name in self._counts

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._counts))

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:
        return f"TopLevelDirectories({self.counts()})"


@dataclass
class ExtractionResult:
    output_dir: Path
    top_level_dirs: TopLevelDirectories
    service_dir: Path
    files_written: int = 0
    md5: Optional[str] = None
    verified: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "outputDir": str(self.output_dir),
            "serviceDir": str(self.service_dir),
            "topLevelDirs": list(self.top_level_dirs),
            "filesWritten": self.files_written,
            "md5": self.md5,
            "verified": self.verified,
        }


@dataclass
class InstallResult:
    metadata: Optional[VersionMetadata]
    version: str
    archive_url: str
    extraction: ExtractionResult

    @property
    def service_dir(self) -> Path:
        return self.extraction.service_dir

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"version": self.version, "archiveUrl": self.archive_url}
        if self.metadata is not None:
            payload["metadata"] = self.metadata.as_dict()
        payload.update(self.extraction.as_dict())
        return payload


@dataclass
class ArchiveEntry:
    """A single decoded tar member handed to the extractor."""

    name: str
    is_dir: bool
    mode: int = 0o644
    content: Any = None
    skipped_type: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return not self.is_dir and self.skipped_type is None
