"""maven-metadata.xml parsing."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import IO, Optional, Union

from servicefetch.modules.artifactfetch.domain import VersionMetadata
from servicefetch.modules.artifactfetch.util.exceptions import MetadataParseError

MetadataSource = Union[bytes, str, IO[bytes]]


def _strip_namespace(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _strip_namespace(child.tag) == name:
            return (child.text or "").strip()
    return None


def parse_metadata(source: MetadataSource) -> VersionMetadata:
    """Parse a maven-metadata.xml document.

    Raises:
        MetadataParseError: when the document is not XML or misses the artifact,
            group or both version fields.
    """
    try:
        if isinstance(source, str):
            source = source.encode("utf-8")
        if isinstance(source, bytes):
            root = ET.fromstring(source)
        else:
            root = ET.parse(source).getroot()
    except (ET.ParseError, UnicodeDecodeError, ValueError) as exc:
        raise MetadataParseError(f"invalid maven-metadata.xml: {exc}") from exc

    if _strip_namespace(root.tag) != "metadata":
        raise MetadataParseError(f"unexpected root element <{_strip_namespace(root.tag)}>")

    artifact = _child_text(root, "artifactId")
    group = _child_text(root, "groupId")
    if not artifact or not group:
        raise MetadataParseError("maven-metadata.xml is missing artifactId or groupId")

    latest = release = None
    for child in root:
        if _strip_namespace(child.tag) == "versioning":
            latest = _child_text(child, "latest")
            release = _child_text(child, "release")
            break
    if not latest and not release:
        raise MetadataParseError(f"maven-metadata.xml for {artifact} declares neither latest nor release")

    return VersionMetadata(artifact=artifact, group=group, latest=latest or "", release=release or "")
