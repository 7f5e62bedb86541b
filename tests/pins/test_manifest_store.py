import json
import os

import pytest
import pytest_asyncio
from unittest.mock import MagicMock, patch

from altfinder.pins.errors import ManifestWriteError
from altfinder.pins.manifest_store import ManifestStore
from altfinder.pins.models import ManifestV2, PinnedEntry


@pytest_asyncio.fixture
async def store(config):
    store = ManifestStore(MagicMock(), config)
    await store.initialize()
    return store


@pytest.mark.asyncio
async def test_read_absent_returns_none(store, tmp_path):
    assert await store.read(str(tmp_path)) is None


@pytest.mark.asyncio
async def test_round_trip(store, tmp_path):
    manifest = ManifestV2(pinned=[
        PinnedEntry(name="b.txt", bookmark="Ym9va21hcms="),
        PinnedEntry(name="a.txt", bookmark=None),
    ])
    await store.write(str(tmp_path), manifest)
    assert await store.read(str(tmp_path)) == manifest


@pytest.mark.asyncio
async def test_written_file_format(store, tmp_path):
    await store.write(str(tmp_path), ManifestV2(pinned=[PinnedEntry(name="a.txt", bookmark="QQ==")]))

    text = (tmp_path / ".manifest.json").read_text()
    assert json.loads(text) == {"pinned": [{"bookmark": "QQ==", "name": "a.txt"}], "version": 2}
    # Sorted keys, pretty printed
    assert text.index('"bookmark"') < text.index('"name"')
    assert text.index('"pinned"') < text.index('"version"')
    assert text.count("\n") > 3


@pytest.mark.asyncio
async def test_read_migrates_v1_in_place(store, tmp_path):
    (tmp_path / ".manifest.json").write_text(json.dumps({"version": 1, "pinned": ["a.txt", "b"]}))

    manifest = await store.read(str(tmp_path))

    assert manifest == ManifestV2(pinned=[PinnedEntry(name="a.txt"), PinnedEntry(name="b")])
    on_disk = json.loads((tmp_path / ".manifest.json").read_text())
    assert on_disk["version"] == 2
    assert on_disk["pinned"] == [{"bookmark": None, "name": "a.txt"}, {"bookmark": None, "name": "b"}]


@pytest.mark.asyncio
async def test_read_migrates_even_if_rewrite_fails(store, tmp_path):
    (tmp_path / ".manifest.json").write_text(json.dumps({"version": 1, "pinned": ["a.txt"]}))
    with patch("altfinder.pins.manifest_store.write_json_atomic", side_effect=OSError("read-only")):
        manifest = await store.read(str(tmp_path))
    assert manifest.names == ["a.txt"]


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["{broken", "[1, 2]", '{"version": 9, "pinned": []}', ""])
async def test_corrupt_manifest_is_absent(store, tmp_path, content):
    (tmp_path / ".manifest.json").write_text(content)
    assert await store.read(str(tmp_path)) is None
    # A read never overwrites what it could not understand
    assert (tmp_path / ".manifest.json").read_text() == content


@pytest.mark.asyncio
async def test_write_failure_raises_and_keeps_previous(store, tmp_path):
    original = ManifestV2(pinned=[PinnedEntry(name="keep.txt")])
    await store.write(str(tmp_path), original)

    with patch("altfinder.core.files.atomic.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(ManifestWriteError) as exc:
            await store.write(str(tmp_path), ManifestV2(pinned=[PinnedEntry(name="new.txt")]))

    assert exc.value.directory == str(tmp_path)
    assert await store.read(str(tmp_path)) == original
    assert sorted(os.listdir(tmp_path)) == [".manifest.json", "config.json"]


@pytest.mark.asyncio
async def test_write_into_missing_directory_raises(store, tmp_path):
    with pytest.raises(ManifestWriteError):
        await store.write(str(tmp_path / "gone"), ManifestV2())


@pytest.mark.asyncio
async def test_delete(store, tmp_path):
    await store.write(str(tmp_path), ManifestV2(pinned=[PinnedEntry(name="a")]))
    assert store.exists(str(tmp_path))
    await store.delete(str(tmp_path))
    assert not store.exists(str(tmp_path))
    await store.delete(str(tmp_path))


@pytest.mark.asyncio
async def test_custom_manifest_name(config, tmp_path):
    config.data.pins.manifest_name = ".altfinder.json"
    store = ManifestStore(MagicMock(), config)
    await store.initialize()
    await store.write(str(tmp_path), ManifestV2(pinned=[PinnedEntry(name="a")]))
    assert (tmp_path / ".altfinder.json").exists()
