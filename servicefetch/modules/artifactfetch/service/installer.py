"""Resolve, download, verify and unpack a service artifact."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Optional, Tuple, Union

import httpx

from servicefetch.modules.artifactfetch.domain import (
    ArtifactCoordinate,
    ExtractionResult,
    InstallResult,
    TopLevelDirectories,
    VersionMetadata,
)
from servicefetch.modules.artifactfetch.extract import ArchiveExtractor, infer_service_dir
from servicefetch.modules.artifactfetch.fileget import ArchiveFetcher, FetchedArchive, LoggingProgress, VersionResolver
from servicefetch.modules.artifactfetch.fileget.fetcher import ProgressSink
from servicefetch.modules.artifactfetch.util.exceptions import ArtifactFetchError, FilesystemError
from servicefetch.settings import Settings

log = logging.getLogger(__name__)


class ServiceInstallService:
    """Single-pass install pipeline: resolver -> fetcher -> extractor -> service dir.

    When the repository declares an MD5 for the archive, the download is staged
    to a temporary file next to the output directory and verified before a
    single entry is written. Without a declared checksum the archive streams
    straight into the extractor.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.Client] = None,
        *,
        resolver: Optional[VersionResolver] = None,
        fetcher: Optional[ArchiveFetcher] = None,
        extractor: Optional[ArchiveExtractor] = None,
    ) -> None:
        self.settings = settings
        self.base_url = settings.repository_url.rstrip("/")
        self.resolver = resolver or VersionResolver(settings, client=client)
        self.fetcher = fetcher or ArchiveFetcher(settings, client=client)
        self.extractor = extractor or ArchiveExtractor()

    def archive_url(self, coordinate: ArtifactCoordinate, version: str, artifact: Optional[str] = None) -> str:
        return f"{self.base_url}/{coordinate.archive_path(version, artifact)}"

    def resolve(self, coordinate: ArtifactCoordinate, variant: Optional[str] = None) -> VersionMetadata:
        return self.resolver.resolve_latest(coordinate, variant)

    def install(
        self,
        coordinate: ArtifactCoordinate,
        output_dir: Union[str, Path],
        *,
        variant: Optional[str] = None,
        version: Optional[str] = None,
        use_latest: bool = False,
        expected_service_dir: Optional[str] = None,
        timeout: Optional[float] = None,
        progress: Optional[ProgressSink] = None,
    ) -> InstallResult:
        """Install ``coordinate`` into ``output_dir``.

        Without ``version`` the newest version is resolved first; ``release`` is
        preferred unless ``use_latest`` is set. With ``version`` no metadata is
        fetched and the artifact name is only adjusted for an explicit variant.
        """
        metadata: Optional[VersionMetadata] = None
        if version:
            artifact = coordinate.artifact
            variant = variant or coordinate.variant
            if variant:
                artifact = self.resolver.policy.candidate_names(artifact, variant)[0]
        else:
            metadata = self.resolve(coordinate, variant)
            artifact = metadata.artifact
            version = metadata.latest if use_latest and metadata.latest else metadata.preferred_version

        url = self.archive_url(coordinate, version, artifact)
        log.info("Installing %s:%s version=%s into %s", coordinate.group, artifact, version, output_dir)
        extraction = self.download_and_extract(
            url,
            output_dir,
            timeout=timeout,
            progress=progress,
            expected_service_dir=expected_service_dir,
        )
        return InstallResult(metadata=metadata, version=version, archive_url=url, extraction=extraction)

    def download_and_extract(
        self,
        url: str,
        output_dir: Union[str, Path],
        *,
        timeout: Optional[float] = None,
        progress: Optional[ProgressSink] = None,
        expected_service_dir: Optional[str] = None,
    ) -> ExtractionResult:
        """Download the ``.tgz`` at ``url`` and unpack it into ``output_dir``.

        Files already written are left in place when extraction fails; the
        caller decides whether to remove ``output_dir``.
        """
        output_dir = Path(output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"failed to create directory {output_dir}: {exc}", output_dir) from exc

        with self.fetcher.open(url, timeout=timeout, progress=progress or LoggingProgress(url)) as archive:
            if archive.expected_md5:
                top_level, verified = self._stage_and_extract(archive, output_dir)
            else:
                top_level = self.extractor.extract_archive(archive, output_dir)
                archive.drain()
                verified = archive.verify()
            md5 = archive.hexdigest()

        service_dir = infer_service_dir(top_level, output_dir, expected_service_dir)
        log.info("Service for %s extracted to %s", url, service_dir)
        return ExtractionResult(
            output_dir=output_dir,
            top_level_dirs=top_level,
            service_dir=service_dir,
            files_written=top_level.files_written,
            md5=md5,
            verified=verified,
        )

    def _stage_and_extract(self, archive: FetchedArchive, output_dir: Path) -> Tuple[TopLevelDirectories, bool]:
        staging_dir = output_dir.resolve().parent
        try:
            staged = tempfile.NamedTemporaryFile(prefix=".servicefetch-", suffix=".tgz", dir=staging_dir)
        except OSError as exc:
            raise FilesystemError(f"failed to create staging file in {staging_dir}: {exc}", staging_dir) from exc

        with staged:
            try:
                for chunk in archive.iter_chunks():
                    staged.write(chunk)
                staged.flush()
            except ArtifactFetchError:
                raise
            except OSError as exc:
                raise FilesystemError(f"failed to stage download to {staged.name}: {exc}", Path(staged.name)) from exc
            verified = archive.verify()
            staged.seek(0)
            return self.extractor.extract_archive(staged, output_dir), verified
