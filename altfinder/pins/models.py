"""
Pins - Data Models

Manifest schema (tagged by ``version``), index rows and the transient
bookmark results.
"""
import os
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from altfinder.core.files import FileInfo


CURRENT_VERSION = 2


class PinnedEntry(BaseModel):
    """One pinned item inside a directory's manifest."""
    model_config = ConfigDict(frozen=True)

    name: str
    bookmark: Optional[str] = None


class ManifestV1(BaseModel):
    """Original schema: bare names (the earliest release wrote full paths)."""
    version: Literal[1] = 1
    pinned: List[str] = Field(default_factory=list)


class ManifestV2(BaseModel):
    """Current schema: names plus optional bookmarks, in display order."""
    version: Literal[2] = 2
    pinned: List[PinnedEntry] = Field(default_factory=list)

    @field_validator("pinned")
    @classmethod
    def _unique_names(cls, value: List[PinnedEntry]) -> List[PinnedEntry]:
        seen = set()
        unique = []
        for entry in value:
            if entry.name in seen:
                continue
            seen.add(entry.name)
            unique.append(entry)
        return unique

    @property
    def names(self) -> List[str]:
        return [entry.name for entry in self.pinned]

    def entry(self, name: str) -> Optional[PinnedEntry]:
        for entry in self.pinned:
            if entry.name == name:
                return entry
        return None


Manifest = Annotated[Union[ManifestV1, ManifestV2], Field(discriminator="version")]

manifest_adapter: TypeAdapter = TypeAdapter(Manifest)


def migrate(manifest: Union[ManifestV1, ManifestV2]) -> ManifestV2:
    """
    Upgrade a manifest to the current schema. Pure; no I/O.

    v1 items are reduced to their last path component and wrapped into
    PinnedEntry with no bookmark. Duplicates keep their first position.
    A v2 manifest is returned unchanged.
    """
    if isinstance(manifest, ManifestV2):
        return manifest

    entries = []
    for item in manifest.pinned:
        name = os.path.basename(item.rstrip("/\\")) or item
        entries.append(PinnedEntry(name=name, bookmark=None))
    return ManifestV2(pinned=entries)


class DirectoryIndexEntry(BaseModel):
    """One row of the global pin index."""
    path: str
    bookmark: Optional[str] = None


class BookmarkResult(BaseModel):
    path: str
    bookmark: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.bookmark is not None and self.error is None


class ResolveResult(BaseModel):
    bookmark: str
    path: Optional[str] = None
    stale: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.path is not None and self.error is None


class PinnedFile(BaseModel):
    """One row of the global "all pinned files" view."""
    file: FileInfo
    source_dir: str


class DirectoryListing(BaseModel):
    """A directory's entries split into pinned (manifest order) and the rest."""
    directory: str
    pinned: List[FileInfo] = Field(default_factory=list)
    unpinned: List[FileInfo] = Field(default_factory=list)
