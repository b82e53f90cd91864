from .artifact import METADATA_FILE_NAME, ArtifactCoordinate, VersionMetadata
from .models import (
    ArchiveEntry,
    DownloadSession,
    ExtractionResult,
    InstallResult,
    TopLevelDirectories,
)
from .variants import NO_VARIANTS, SCALA_VARIANTS, NamingVariantPolicy

__all__ = [
    "METADATA_FILE_NAME",
    "ArtifactCoordinate",
    "VersionMetadata",
    "ArchiveEntry",
    "DownloadSession",
    "ExtractionResult",
    "InstallResult",
    "TopLevelDirectories",
    "NO_VARIANTS",
    "SCALA_VARIANTS",
    "NamingVariantPolicy",
]
