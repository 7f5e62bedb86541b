"""
Pins - Pin Index

Process-wide candidate set of directories that have at least one pin.
Rebuildable from manifests; persisted in the settings store so the global
view does not need a filesystem crawl.
"""
import os
from typing import Dict, Iterable, List, Optional

from loguru import logger
from pydantic import ValidationError

from altfinder.core.base_system import BaseSystem
from altfinder.core.settings_store import SettingsStore
from altfinder.pins.bookmarks import BookmarkResolver
from altfinder.pins.models import DirectoryIndexEntry

INDEX_KEY = "pinnedDirectoryIndex"


def normalize_dir(path: str) -> str:
    return os.path.normpath(os.path.abspath(path))


class PinIndex(BaseSystem):
    """
    Cache of pinned directories with a single owner.

    Entries are deduplicated by bookmark identity when the bookmark format
    carries one, otherwise by normalized path. The in-memory view is
    loaded lazily from the settings store; ``invalidate`` drops it so the
    next access reloads.

    Every mutation bumps ``revision``. Reconciliation passes the revision
    it started from to ``prune`` so rows recorded during the pass survive.
    """

    depends_on = [SettingsStore, BookmarkResolver]

    async def initialize(self) -> None:
        self._store = self.locator.get_system(SettingsStore)
        self._resolver = self.locator.get_system(BookmarkResolver)
        self._entries: Optional[List[DirectoryIndexEntry]] = None
        self._recorded_at: Dict[str, int] = {}
        self._removed_at: Dict[str, int] = {}
        self.revision = 0
        logger.info(f"PinIndex ready ({len(self._load())} directories)")
        await super().initialize()

    async def shutdown(self) -> None:
        self._entries = None
        await super().shutdown()

    # ==================== Cache ====================

    def _load(self) -> List[DirectoryIndexEntry]:
        if self._entries is not None:
            return self._entries

        entries: List[DirectoryIndexEntry] = []
        for raw in self._store.get(INDEX_KEY, []) or []:
            try:
                entries.append(DirectoryIndexEntry.model_validate(raw))
            except ValidationError:
                logger.warning(f"Dropping malformed pin index row: {raw!r}")
        self._entries = entries
        return entries

    def _persist(self) -> None:
        entries = self._load()
        try:
            self._store.set(INDEX_KEY, [e.model_dump() for e in entries])
        except OSError as e:
            # In-memory index stays authoritative until the next successful save
            logger.error(f"Failed to persist pin index: {e}")
        self.revision += 1

    def invalidate(self) -> None:
        """Drop the in-memory view; the next access reloads from the store."""
        self._entries = None
        logger.debug("PinIndex invalidated")

    def _find(self, path: str, bookmark: Optional[str]) -> Optional[int]:
        entries = self._load()
        target = normalize_dir(path)
        identity = self._resolver.identity(bookmark)
        for i, entry in enumerate(entries):
            if normalize_dir(entry.path) == target:
                return i
            if identity is not None and self._resolver.identity(entry.bookmark) == identity:
                return i
            if bookmark and entry.bookmark == bookmark:
                return i
        return None

    # ==================== API ====================

    def record_directory(self, path: str, bookmark: Optional[str] = None) -> None:
        """
        Insert a directory. No-op if the same directory is already indexed;
        a known directory seen under a new path has its row updated.
        """
        entries = self._load()
        path = normalize_dir(path)
        self._removed_at.pop(path, None)
        index = self._find(path, bookmark)
        if index is None:
            entries.append(DirectoryIndexEntry(path=path, bookmark=bookmark))
            logger.debug(f"Indexed pinned directory {path}")
        else:
            current = entries[index]
            if current.path == path and (current.bookmark == bookmark or bookmark is None):
                self._recorded_at[path] = self.revision + 1
                self.revision += 1
                return
            entries[index] = DirectoryIndexEntry(path=path, bookmark=bookmark or current.bookmark)
            logger.debug(f"Updated pinned directory {current.path} -> {path}")
        self._persist()
        self._recorded_at[path] = self.revision

    def remove_directory(self, path: str) -> None:
        """
        Remove a directory. Idempotent.

        The removal is remembered by revision so a reconciliation pass that
        saw the directory live before the removal does not restore it.
        """
        entries = self._load()
        target = normalize_dir(path)
        self._recorded_at.pop(target, None)
        kept = [e for e in entries if normalize_dir(e.path) != target]
        if len(kept) == len(entries):
            self.revision += 1
        else:
            self._entries = kept
            self._persist()
            logger.debug(f"Removed pinned directory {target}")
        self._removed_at[target] = self.revision

    def list(self) -> List[DirectoryIndexEntry]:
        return list(self._load())

    def contains(self, path: str) -> bool:
        return self._find(path, None) is not None

    def prune(self, valid: Iterable[DirectoryIndexEntry], since_revision: Optional[int] = None) -> None:
        """
        Replace the index with the entries confirmed live by reconciliation.

        Args:
            valid: Entries that contributed at least one live pin
            since_revision: Revision the pass started at; rows recorded
                after it are kept even if the pass did not see them, and
                directories removed after it are dropped even if it did
        """
        rebuilt: List[DirectoryIndexEntry] = []
        seen = set()
        for entry in valid:
            key = normalize_dir(entry.path)
            if key in seen:
                continue
            if since_revision is not None and self._removed_at.get(key, -1) > since_revision:
                logger.debug(f"Not restoring {key}: unpinned during reconciliation")
                continue
            seen.add(key)
            rebuilt.append(DirectoryIndexEntry(path=key, bookmark=entry.bookmark))

        if since_revision is not None:
            for entry in self._load():
                key = normalize_dir(entry.path)
                if key not in seen and self._recorded_at.get(key, -1) > since_revision:
                    seen.add(key)
                    rebuilt.append(entry)

        dropped = len(self._load()) - len(rebuilt)
        self._entries = rebuilt
        self._recorded_at = {k: v for k, v in self._recorded_at.items() if k in seen}
        self._persist()
        if dropped > 0:
            logger.info(f"PinIndex pruned {dropped} dead directories")
