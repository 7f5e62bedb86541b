import pytest
from pydantic import ValidationError

from altfinder.pins.models import (
    ManifestV1,
    ManifestV2,
    PinnedEntry,
    manifest_adapter,
    migrate,
)


def test_migrate_v1_wraps_names():
    m = ManifestV1(pinned=["a.txt", "b"])
    upgraded = migrate(m)
    assert upgraded.version == 2
    assert upgraded.pinned == [PinnedEntry(name="a.txt", bookmark=None), PinnedEntry(name="b", bookmark=None)]


def test_migrate_is_idempotent():
    m = ManifestV1(pinned=["a.txt", "b"])
    once = migrate(m)
    assert migrate(once) == once
    assert migrate(once) is once

    v2 = ManifestV2(pinned=[PinnedEntry(name="x", bookmark="Ym0=")])
    assert migrate(migrate(v2)) == migrate(v2) == v2


def test_migrate_reduces_legacy_full_paths():
    m = ManifestV1(pinned=["/Users/me/proj/report.txt", "notes.md", "/Users/me/proj/folder/"])
    assert migrate(m).names == ["report.txt", "notes.md", "folder"]


def test_migrate_keeps_order_and_collapses_duplicates():
    m = ManifestV1(pinned=["b", "a", "/x/b", "c"])
    assert migrate(m).names == ["b", "a", "c"]


def test_migrate_empty():
    assert migrate(ManifestV1()).pinned == []


def test_v2_rejects_duplicate_names_by_keeping_first():
    m = ManifestV2(pinned=[PinnedEntry(name="a", bookmark="1"), PinnedEntry(name="a", bookmark="2")])
    assert m.pinned == [PinnedEntry(name="a", bookmark="1")]


def test_adapter_discriminates_on_version():
    v1 = manifest_adapter.validate_python({"version": 1, "pinned": ["a"]})
    v2 = manifest_adapter.validate_python({"version": 2, "pinned": [{"name": "a", "bookmark": None}]})
    assert isinstance(v1, ManifestV1)
    assert isinstance(v2, ManifestV2)


@pytest.mark.parametrize("raw", [
    {"version": 3, "pinned": []},
    {"pinned": ["a"]},
    {"version": 2, "pinned": ["bare-name"]},
    {"version": 1, "pinned": [{"name": "a"}]},
])
def test_adapter_rejects_unknown_or_mismatched_shapes(raw):
    with pytest.raises(ValidationError):
        manifest_adapter.validate_python(raw)


def test_entry_lookup():
    m = ManifestV2(pinned=[PinnedEntry(name="a"), PinnedEntry(name="b", bookmark="t")])
    assert m.entry("b").bookmark == "t"
    assert m.entry("zzz") is None
    assert m.names == ["a", "b"]
