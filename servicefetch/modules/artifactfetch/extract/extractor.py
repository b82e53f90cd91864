"""Entry-by-entry extraction of gzip-compressed tar streams."""

from __future__ import annotations

import gzip
import logging
import os
import shutil
import tarfile
import zlib
from pathlib import Path, PurePosixPath
from typing import IO, Iterable, Iterator, Union

from servicefetch.modules.artifactfetch.domain import ArchiveEntry, TopLevelDirectories
from servicefetch.modules.artifactfetch.util.exceptions import (
    ArchiveFormatError,
    ArtifactFetchError,
    FilesystemError,
    UnsafeArchiveEntryError,
)

log = logging.getLogger(__name__)

_TAR_ERRORS = (tarfile.TarError, gzip.BadGzipFile, EOFError, zlib.error)


class _PrefixedReader:
    """Replays bytes already read from ``fileobj`` before reading further."""

    def __init__(self, prefix: bytes, fileobj: IO[bytes]) -> None:
        self._prefix = prefix
        self._fileobj = fileobj

    def read(self, size: int = -1) -> bytes:
        if not self._prefix:
            return self._fileobj.read(size)
        if size is None or size < 0:
            data, self._prefix = self._prefix + self._fileobj.read(), b""
            return data
        data, self._prefix = self._prefix[:size], self._prefix[size:]
        if len(data) < size:
            data += self._fileobj.read(size - len(data))
        return data


def _skipped_type(member: tarfile.TarInfo) -> str:
    if member.issym():
        return "symlink"
    if member.islnk():
        return "hardlink"
    if member.isdev():
        return "device"
    return "other"


def iter_tar_entries(fileobj: IO[bytes]) -> Iterator[ArchiveEntry]:
    """Yield the members of a ``.tgz`` stream in archive order.

    The stream is read strictly forward; a file entry's ``content`` is only
    readable until the next entry is requested. A zero-byte stream, or a gzip
    stream with no tar data in it, yields nothing.
    """
    try:
        with gzip.GzipFile(fileobj=fileobj, mode="rb") as payload:
            head = payload.read(1)
            if not head:
                return
            with tarfile.open(fileobj=_PrefixedReader(head, payload), mode="r|") as archive:
                for member in archive:
                    if member.isdir():
                        yield ArchiveEntry(name=member.name, is_dir=True, mode=member.mode)
                    elif member.isreg():
                        yield ArchiveEntry(
                            name=member.name,
                            is_dir=False,
                            mode=member.mode,
                            content=archive.extractfile(member),
                        )
                    else:
                        yield ArchiveEntry(
                            name=member.name,
                            is_dir=False,
                            mode=member.mode,
                            skipped_type=_skipped_type(member),
                        )
    except _TAR_ERRORS as exc:
        raise ArchiveFormatError(f"invalid tar.gz archive: {exc}") from exc


class ArchiveExtractor:
    """Write archive entries below an output directory."""

    DIR_MODE = 0o755
    COPY_BUFFER = 65536

    def __init__(self) -> None:
        self.log = logging.getLogger(self.__class__.__name__)

    def extract_archive(self, fileobj: IO[bytes], output_dir: Union[str, Path]) -> TopLevelDirectories:
        return self.extract(iter_tar_entries(fileobj), output_dir)

    def extract(self, entries: Iterable[ArchiveEntry], output_dir: Union[str, Path]) -> TopLevelDirectories:
        """Create directories and files for ``entries`` under ``output_dir``.

        Returns the top-level directories that received files during this call.

        Raises:
            FilesystemError: a directory or file could not be written.
            UnsafeArchiveEntryError: an entry name is absolute or contains ``..``.
            ArchiveFormatError: the underlying tar data is corrupt.
        """
        output_dir = Path(output_dir)
        top_level = TopLevelDirectories()
        for entry in entries:
            target = self._target_path(output_dir, entry.name)
            if entry.is_dir:
                self._make_dirs(target)
            elif entry.is_file:
                self._write_file(target, entry)
                top_level.record(entry.name)
            else:
                self.log.debug("Skipping %s entry %s", entry.skipped_type, entry.name)
        self.log.info(
            "Extracted %d files into %s (top-level dirs: %s)",
            top_level.files_written,
            output_dir,
            ", ".join(top_level) or "-",
        )
        return top_level

    def _target_path(self, output_dir: Path, name: str) -> Path:
        relative = PurePosixPath(name)
        if relative.is_absolute() or ".." in relative.parts:
            raise UnsafeArchiveEntryError(f"archive entry escapes the output directory: {name}", output_dir / name.lstrip("/"))
        parts = [part for part in relative.parts if part != "."]
        return output_dir.joinpath(*parts)

    def _make_dirs(self, path: Path) -> None:
        try:
            path.mkdir(mode=self.DIR_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"failed to create directory {path}: {exc}", path) from exc

    def _write_file(self, target: Path, entry: ArchiveEntry) -> None:
        self._make_dirs(target.parent)
        try:
            if target.is_symlink() or target.is_file():
                target.unlink()
            with open(target, "wb") as fh:
                shutil.copyfileobj(entry.content, fh, self.COPY_BUFFER)
            os.chmod(target, entry.mode & 0o7777)
        except _TAR_ERRORS as exc:
            raise ArchiveFormatError(f"invalid tar.gz archive while reading {entry.name}: {exc}") from exc
        except ArtifactFetchError:
            raise
        except OSError as exc:
            raise FilesystemError(f"failed to write file {target}: {exc}", target) from exc
