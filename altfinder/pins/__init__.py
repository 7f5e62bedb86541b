"""
Pins - pinned-files subsystem.

- BookmarkResolver: persistable references that survive renames
- ManifestStore: per-directory sidecar manifest (schema + migration)
- PinIndex: global candidate set of pinned directories
- PinService: facade used by the UI
"""
from .models import (
    PinnedEntry,
    ManifestV1,
    ManifestV2,
    Manifest,
    DirectoryIndexEntry,
    BookmarkResult,
    ResolveResult,
    PinnedFile,
    DirectoryListing,
    migrate,
)
from .errors import PinError, ManifestWriteError, BookmarkError
from .bookmarks import BookmarkResolver
from .manifest_store import ManifestStore
from .pin_index import PinIndex
from .service import PinService
from .bundle import PinsBundle

__all__ = [
    "PinnedEntry",
    "ManifestV1",
    "ManifestV2",
    "Manifest",
    "DirectoryIndexEntry",
    "BookmarkResult",
    "ResolveResult",
    "PinnedFile",
    "DirectoryListing",
    "migrate",
    "PinError",
    "ManifestWriteError",
    "BookmarkError",
    "BookmarkResolver",
    "ManifestStore",
    "PinIndex",
    "PinService",
    "PinsBundle",
]
