from .fetcher import ArchiveFetcher, FetchedArchive, LoggingProgress
from .metadata import parse_metadata
from .resolver import VersionResolver

__all__ = ["ArchiveFetcher", "FetchedArchive", "LoggingProgress", "parse_metadata", "VersionResolver"]
