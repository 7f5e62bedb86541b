import json

import pytest

from altfinder.core.bootstrap import ApplicationBuilder
from altfinder.core.settings_store import SettingsStore
from altfinder.pins.bundle import PinsBundle
from altfinder.pins.legacy import (
    LEGACY_DIRECTORIES_KEY,
    LEGACY_FILES_KEY,
    MIGRATED_FLAG,
    LegacyPinMigration,
)
from altfinder.pins.models import ManifestV2, PinnedEntry
from altfinder.pins.pin_index import PinIndex
from altfinder.pins.service import PinService


@pytest.fixture
def store(locator) -> SettingsStore:
    store = locator.get_system(SettingsStore)
    store.delete(MIGRATED_FLAG)
    return store


@pytest.mark.asyncio
async def test_startup_sweep_creates_manifests(config, tmp_path, project):
    settings = {LEGACY_FILES_KEY: {str(project): [str(project / "report.txt"), str(project / "readme.md")]}}
    (tmp_path / "settings.json").write_text(json.dumps(settings))

    locator = await ApplicationBuilder("test", config=config).add_bundle(PinsBundle()).build()
    try:
        pins = locator.get_system(PinService)
        assert await pins.get_pinned(str(project)) == [str(project / "report.txt"), str(project / "readme.md")]
        assert locator.get_system(PinIndex).contains(str(project))
        assert locator.get_system(SettingsStore).get(MIGRATED_FLAG) is True
    finally:
        await locator.stop_all()


@pytest.mark.asyncio
async def test_sweep_runs_once(pins, store, project):
    store.set(LEGACY_FILES_KEY, {str(project): [str(project / "readme.md")]})
    assert await LegacyPinMigration(pins, store).run() == 1

    await pins.remove_pinned(str(project), str(project / "readme.md"))
    assert await LegacyPinMigration(pins, store).run() == 0
    assert await pins.get_pinned(str(project)) == []


@pytest.mark.asyncio
async def test_existing_manifest_wins(pins, store, project):
    await pins.manifests.write(str(project), ManifestV2(pinned=[PinnedEntry(name="notes.txt")]))
    store.set(LEGACY_FILES_KEY, {str(project): [str(project / "readme.md")]})

    assert await LegacyPinMigration(pins, store).run() == 0

    assert await pins.get_pinned(str(project)) == [str(project / "notes.txt")]
    assert pins.index.contains(str(project))


@pytest.mark.asyncio
async def test_missing_directories_are_skipped(pins, store, tmp_path, project):
    store.set(LEGACY_FILES_KEY, {
        str(tmp_path / "gone"): [str(tmp_path / "gone" / "a.txt")],
        str(project): [],
        "not-a-list": "x",
    })

    assert await LegacyPinMigration(pins, store).run() == 0
    assert not (project / ".manifest.json").exists()
    assert store.get(MIGRATED_FLAG) is True


@pytest.mark.asyncio
async def test_directory_list_feeds_index(pins, store, project, make_dir):
    other = make_dir("other")
    store.set(LEGACY_DIRECTORIES_KEY, [str(project), str(other), 42])

    await LegacyPinMigration(pins, store).run()

    assert [e.path for e in pins.index.list()] == [str(project), str(other)]
    # Legacy keys stay behind for older builds
    assert store.get(LEGACY_DIRECTORIES_KEY) == [str(project), str(other), 42]


@pytest.mark.asyncio
async def test_malformed_legacy_values_are_ignored(pins, store):
    store.set(LEGACY_FILES_KEY, ["not", "a", "map"])
    store.set(LEGACY_DIRECTORIES_KEY, {"not": "a list"})

    assert await LegacyPinMigration(pins, store).run() == 0
    assert pins.index.list() == []
