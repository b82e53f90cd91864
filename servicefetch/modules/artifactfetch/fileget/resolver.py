"""Latest-version lookup against maven-metadata.xml."""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from servicefetch.modules.artifactfetch.domain import (
    SCALA_VARIANTS,
    ArtifactCoordinate,
    NamingVariantPolicy,
    VersionMetadata,
)
from servicefetch.modules.artifactfetch.fileget.metadata import parse_metadata
from servicefetch.modules.artifactfetch.util import build_user_agent
from servicefetch.modules.artifactfetch.util.exceptions import (
    ArtifactFetchError,
    ArtifactNotFoundError,
    FetchTimeoutError,
    HttpStatusError,
    NetworkError,
    RequestBuildError,
)
from servicefetch.settings import Settings


class VersionResolver:
    """Find the newest published version of an artifact.

    Artifacts whose names carry a naming variant suffix (see
    :class:`NamingVariantPolicy`) are looked up under every candidate suffix in
    priority order until one of them has metadata.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.Client] = None,
        policy: NamingVariantPolicy = SCALA_VARIANTS,
    ) -> None:
        self.settings = settings
        self.base_url = settings.repository_url.rstrip("/")
        self.policy = policy
        self.user_agent = build_user_agent(settings.agent_name, settings.version)
        self.log = logging.getLogger(self.__class__.__name__)
        auth = None
        if settings.repository_username and settings.repository_password:
            auth = (settings.repository_username, settings.repository_password)
        self._auth = auth
        self._timeout = float(settings.http_timeout_seconds)
        self._client = client or httpx.Client(timeout=self._timeout, follow_redirects=True)

    def metadata_url(self, coordinate: ArtifactCoordinate, artifact: Optional[str] = None) -> str:
        return f"{self.base_url}/{coordinate.metadata_path(artifact)}"

    def resolve_latest(self, coordinate: ArtifactCoordinate, variant: Optional[str] = None) -> VersionMetadata:
        """Return the metadata of the first candidate name that resolves.

        Raises:
            ArtifactNotFoundError: naming ``coordinate.artifact`` when no candidate
                could be resolved.
        """
        variant = variant or coordinate.variant
        candidates = self.policy.candidate_names(coordinate.artifact, variant)
        attempted: List[str] = []
        last_error: Optional[ArtifactFetchError] = None
        for name in candidates:
            attempted.append(name)
            try:
                metadata = self.fetch_metadata(coordinate, name)
            except ArtifactFetchError as exc:
                self.log.debug("No metadata for %s:%s (%s)", coordinate.group, name, exc)
                last_error = exc
                continue
            self.log.info(
                "Resolved %s:%s latest=%s release=%s",
                metadata.group,
                metadata.artifact,
                metadata.latest or "-",
                metadata.release or "-",
            )
            return metadata

        self.log.warning("Failed to resolve %s after trying %s", coordinate, ", ".join(attempted))
        raise ArtifactNotFoundError(coordinate.artifact, attempted) from last_error

    def fetch_metadata(self, coordinate: ArtifactCoordinate, artifact: Optional[str] = None) -> VersionMetadata:
        """Download and parse maven-metadata.xml for a single artifact name."""
        url = self.metadata_url(coordinate, artifact)
        try:
            request = self._client.build_request("GET", url, headers={"User-Agent": self.user_agent})
        except (httpx.InvalidURL, ValueError) as exc:
            raise RequestBuildError(f"cannot build request for {url}: {exc}") from exc

        try:
            response = self._client.send(request, auth=self._auth)
        except httpx.UnsupportedProtocol as exc:
            raise RequestBuildError(f"cannot build request for {url}: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise FetchTimeoutError(url, self._timeout) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(url, str(exc)) from exc

        try:
            if response.status_code != 200:
                raise HttpStatusError(url, response.status_code)
            return parse_metadata(response.content)
        finally:
            response.close()
