"""ASGI entrypoint: ``uvicorn servicefetch.main:app``."""

from .factory import create_app
from .settings import get_settings

settings = get_settings()
app = create_app(settings)
