from .installer import ServiceInstallService

__all__ = ["ServiceInstallService"]
