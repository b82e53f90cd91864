"""Artifact fetch module exports."""

from .service import ServiceInstallService
from .controller import router as servicefetch_router

__all__ = ["ServiceInstallService", "servicefetch_router"]
