"""User-Agent helper shared by the metadata and archive requests."""

from __future__ import annotations

import platform
from typing import Optional


def build_user_agent(tool: str, version: str, system: Optional[str] = None, machine: Optional[str] = None) -> str:
    """Return ``tool/version (os arch)``, e.g. ``servicefetch/0.3.0 (linux x86_64)``."""
    os_name = (system or platform.system() or "unknown").lower()
    arch = (machine or platform.machine() or "unknown").lower()
    return f"{tool}/{version} ({os_name} {arch})"
