"""Resolve, download and unpack service artifacts from a Maven repository."""

__version__ = "0.3.0"
