import io
import tarfile

import pytest

from servicefetch.settings import Settings

REPO_URL = "https://repo.test/artifactory/releases"


def build_tgz(entries) -> bytes:
    """Build a .tgz from ``(name, content, mode)`` tuples; ``content=None`` adds a directory."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, content, mode in entries:
            info = tarfile.TarInfo(name)
            info.mode = mode
            if content is None:
                info.type = tarfile.DIRTYPE
                tar.addfile(info)
            else:
                info.size = len(content)
                tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


def build_settings(**overrides) -> Settings:
    defaults = {"repository_url": REPO_URL}
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest.fixture
def make_tgz():
    return build_tgz


@pytest.fixture
def settings_factory():
    return build_settings
