"""Wiring of the shared HTTP client and the artifact services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from servicefetch.modules.artifactfetch import ServiceInstallService
from servicefetch.modules.artifactfetch.extract import ArchiveExtractor
from servicefetch.modules.artifactfetch.fileget import ArchiveFetcher, VersionResolver
from .settings import Settings

log = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Container that shares one ``httpx.Client`` between all services."""

    settings: Settings
    client: Optional[httpx.Client] = None
    resolver: VersionResolver = field(init=False)
    fetcher: ArchiveFetcher = field(init=False)
    extractor: ArchiveExtractor = field(init=False)
    install_service: ServiceInstallService = field(init=False)

    def __post_init__(self) -> None:
        if self.client is None:
            self.client = httpx.Client(timeout=self.settings.http_timeout_seconds, follow_redirects=True)
        self.resolver = VersionResolver(self.settings, client=self.client)
        self.fetcher = ArchiveFetcher(self.settings, client=self.client)
        self.extractor = ArchiveExtractor()
        self.install_service = ServiceInstallService(
            self.settings,
            resolver=self.resolver,
            fetcher=self.fetcher,
            extractor=self.extractor,
        )
        log.info("Service container ready for repository %s", self.settings.repository_url)

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
