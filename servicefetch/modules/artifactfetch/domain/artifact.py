"""Artifact coordinates and version metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

METADATA_FILE_NAME = "maven-metadata.xml"


@dataclass(frozen=True)
class ArtifactCoordinate:
    """A (group, artifact) pair in a Maven-layout repository.

    ``group`` accepts either the dotted form (``uk.gov.hmrc``) or the path form
    (``uk/gov/hmrc``). ``variant`` optionally pins the naming variant used during
    resolution, e.g. ``"2.13"``.
    """

    group: str
    artifact: str
    variant: Optional[str] = None

    @property
    def group_path(self) -> str:
        return self.group.strip("/").replace(".", "/")

    def path_segments(self, artifact: Optional[str] = None) -> List[str]:
        return [self.group_path, artifact or self.artifact]

    def metadata_path(self, artifact: Optional[str] = None) -> str:
        return "/".join([*self.path_segments(artifact), METADATA_FILE_NAME])

    def archive_path(self, version: str, artifact: Optional[str] = None, extension: str = "tgz") -> str:
        name = artifact or self.artifact
        filename = f"{name}-{version}.{extension.lstrip('.')}"
        return "/".join([*self.path_segments(name), version, filename])

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}"


@dataclass(frozen=True)
class VersionMetadata:
    """Fields read from maven-metadata.xml."""

    artifact: str
    group: str
    latest: str = ""
    release: str = ""

    @property
    def preferred_version(self) -> str:
        """The version to install: ``release`` when published, else ``latest``."""
        return self.release or self.latest

    def as_dict(self) -> dict:
        return {
            "artifact": self.artifact,
            "group": self.group,
            "latest": self.latest,
            "release": self.release,
            "preferredVersion": self.preferred_version,
        }
