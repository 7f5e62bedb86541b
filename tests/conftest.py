import pytest
import pytest_asyncio

from altfinder.core.bootstrap import ApplicationBuilder
from altfinder.core.config import ConfigManager
from altfinder.pins.bundle import PinsBundle
from altfinder.pins.service import PinService


@pytest.fixture
def config(tmp_path, monkeypatch):
    """Config isolated in tmp_path (settings store included)."""
    monkeypatch.delenv("ALTFINDER_BOOKMARK_BACKEND", raising=False)
    monkeypatch.delenv("ALTFINDER_SETTINGS_PATH", raising=False)
    config = ConfigManager(str(tmp_path / "config.json"))
    config.data.pins.settings_path = str(tmp_path / "settings.json")
    return config


@pytest_asyncio.fixture
async def locator(config):
    locator = await ApplicationBuilder("test", config=config).add_bundle(PinsBundle()).build()
    yield locator
    await locator.stop_all()


@pytest.fixture
def pins(locator) -> PinService:
    return locator.get_system(PinService)


@pytest.fixture
def project(tmp_path):
    """A directory with a few files to pin."""
    root = tmp_path / "proj"
    root.mkdir()
    for name in ("readme.md", "report.txt", "notes.txt"):
        (root / name).write_text(name)
    (root / "sub").mkdir()
    return root


@pytest.fixture
def make_dir(tmp_path):
    """Factory: make_dir("name", ["a.txt"]) -> directory path with files."""
    def _make(name, files=()):
        path = tmp_path / name
        path.mkdir(parents=True, exist_ok=True)
        for f in files:
            (path / f).write_text(f)
        return path
    return _make
