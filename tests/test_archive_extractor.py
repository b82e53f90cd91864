import gzip
import io
import os
import stat
import tarfile

import pytest

from servicefetch.modules.artifactfetch.domain import ArchiveEntry
from servicefetch.modules.artifactfetch.extract import ArchiveExtractor
from servicefetch.modules.artifactfetch.util.exceptions import (
    ArchiveFormatError,
    FilesystemError,
    UnsafeArchiveEntryError,
)


def snapshot(root):
    tree = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            path = os.path.join(dirpath, name)
            rel = os.path.relpath(path, root)
            mode = stat.S_IMODE(os.stat(path).st_mode)
            content = None if os.path.isdir(path) else open(path, "rb").read()
            tree[rel] = (mode, content)
    return tree


def test_extracts_files_with_recorded_modes(tmp_path, make_tgz):
    data = make_tgz(
        [
            ("a", None, 0o755),
            ("a/b.txt", b"bee", 0o640),
            ("a/c.txt", b"sea", 0o755),
        ]
    )

    top_level = ArchiveExtractor().extract_archive(io.BytesIO(data), tmp_path)

    assert list(top_level) == ["a"]
    assert top_level.count("a") == 2
    assert (tmp_path / "a" / "b.txt").read_bytes() == b"bee"
    assert (tmp_path / "a" / "c.txt").read_bytes() == b"sea"
    assert stat.S_IMODE((tmp_path / "a" / "b.txt").stat().st_mode) == 0o640
    assert stat.S_IMODE((tmp_path / "a" / "c.txt").stat().st_mode) == 0o755


def test_files_before_their_directory_entry(tmp_path, make_tgz):
    data = make_tgz(
        [
            ("svc/bin/run.sh", b"#!/bin/sh\n", 0o755),
            ("svc/bin", None, 0o755),
            ("svc/conf/app.conf", b"x=1\n", 0o644),
        ]
    )

    top_level = ArchiveExtractor().extract_archive(io.BytesIO(data), tmp_path)

    assert list(top_level) == ["svc"]
    assert (tmp_path / "svc" / "bin" / "run.sh").is_file()
    assert (tmp_path / "svc" / "conf" / "app.conf").read_text() == "x=1\n"


def test_root_marker_is_not_a_top_level_directory(tmp_path, make_tgz):
    data = make_tgz(
        [
            ("./", None, 0o755),
            ("./README", b"readme", 0o644),
            ("./svc/lib/a.jar", b"jar", 0o644),
        ]
    )

    top_level = ArchiveExtractor().extract_archive(io.BytesIO(data), tmp_path)

    assert list(top_level) == ["svc"]
    assert "." not in top_level
    assert top_level.files_written == 2
    assert (tmp_path / "README").read_bytes() == b"readme"


def test_zero_length_archives(tmp_path, make_tgz):
    extractor = ArchiveExtractor()

    assert len(extractor.extract_archive(io.BytesIO(b""), tmp_path)) == 0
    assert len(extractor.extract_archive(io.BytesIO(make_tgz([])), tmp_path)) == 0
    assert len(extractor.extract_archive(io.BytesIO(gzip.compress(b"")), tmp_path)) == 0
    assert list(tmp_path.iterdir()) == []


def test_extracting_twice_gives_identical_tree(tmp_path, make_tgz):
    data = make_tgz(
        [
            ("svc/", None, 0o755),
            ("svc/bin/run.sh", b"#!/bin/sh\necho hi\n", 0o755),
            ("svc/conf/readonly.conf", b"locked", 0o444),
            ("svc/lib/a.jar", b"jar", 0o644),
        ]
    )
    extractor = ArchiveExtractor()

    first = extractor.extract_archive(io.BytesIO(data), tmp_path)
    tree = snapshot(tmp_path)
    second = extractor.extract_archive(io.BytesIO(data), tmp_path)

    assert snapshot(tmp_path) == tree
    assert first.counts() == second.counts() == {"svc": 3}


def test_other_entry_types_are_skipped(tmp_path):
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        info = tarfile.TarInfo("svc/file.txt")
        info.size = 2
        tar.addfile(info, io.BytesIO(b"ok"))
        link = tarfile.TarInfo("svc/link")
        link.type = tarfile.SYMTYPE
        link.linkname = "/etc/passwd"
        tar.addfile(link)

    top_level = ArchiveExtractor().extract_archive(io.BytesIO(buf.getvalue()), tmp_path)

    assert top_level.files_written == 1
    assert not (tmp_path / "svc" / "link").exists()


@pytest.mark.parametrize("name", ["../evil.txt", "svc/../../evil.txt", "/etc/evil.txt"])
def test_entries_escaping_output_dir_are_rejected(tmp_path, make_tgz, name):
    data = make_tgz([(name, b"evil", 0o644)])
    out = tmp_path / "out"

    with pytest.raises(UnsafeArchiveEntryError):
        ArchiveExtractor().extract_archive(io.BytesIO(data), out)

    assert not (tmp_path / "evil.txt").exists()


def test_filesystem_failures_are_recoverable_errors(tmp_path, make_tgz):
    (tmp_path / "a").write_text("a file where a directory should be")
    data = make_tgz([("a/b.txt", b"bee", 0o644)])

    with pytest.raises(FilesystemError) as excinfo:
        ArchiveExtractor().extract_archive(io.BytesIO(data), tmp_path)

    assert excinfo.value.path == tmp_path / "a"


def test_corrupt_archives_raise_format_error(tmp_path, make_tgz):
    with pytest.raises(ArchiveFormatError):
        ArchiveExtractor().extract_archive(io.BytesIO(b"this is not a gzip stream"), tmp_path)

    truncated = make_tgz([("svc/big.bin", os.urandom(200_000), 0o644)])[:5000]
    with pytest.raises(ArchiveFormatError):
        ArchiveExtractor().extract_archive(io.BytesIO(truncated), tmp_path)


def test_extract_accepts_plain_entries(tmp_path):
    entries = [
        ArchiveEntry(name="x", is_dir=True, mode=0o755),
        ArchiveEntry(name="x/y.txt", is_dir=False, mode=0o600, content=io.BytesIO(b"why")),
        ArchiveEntry(name="z/w.txt", is_dir=False, mode=0o600, content=io.BytesIO(b"double-u")),
    ]

    top_level = ArchiveExtractor().extract(entries, tmp_path)

    assert list(top_level) == ["x", "z"]
    assert (tmp_path / "z" / "w.txt").read_bytes() == b"double-u"
