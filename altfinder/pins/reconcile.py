"""
Pins - Reconciliation

Builds the global "all pinned files" view from the pin index and folds
dead directories out of the index. Every failure is handled by omission:
one broken directory never hides the pins of the others.
"""
import os
from typing import TYPE_CHECKING, List, Optional

from loguru import logger

from altfinder.core.files import stat
from altfinder.pins.models import DirectoryIndexEntry, PinnedFile

if TYPE_CHECKING:
    from altfinder.pins.service import PinService


class Reconciler:
    """One pass = locate directories, collect live pins, prune the index."""

    def __init__(self, service: "PinService"):
        self.service = service

    async def _locate_directory(self, entry: DirectoryIndexEntry) -> Optional[DirectoryIndexEntry]:
        """Current location of an indexed directory, or None if it is gone."""
        if os.path.isdir(entry.path):
            return entry
        if not entry.bookmark:
            logger.debug(f"Pinned directory {entry.path} is gone and has no bookmark")
            return None

        result = await self.service.bookmarks.resolve(entry.bookmark)
        if not result.ok or not os.path.isdir(result.path):
            logger.debug(f"Pinned directory {entry.path} could not be resolved: {result.error}")
            return None

        logger.info(f"Pinned directory moved: {entry.path} -> {result.path}")
        bookmark = entry.bookmark
        if result.stale:
            fresh = await self.service.bookmarks.create(result.path)
            if fresh.ok:
                bookmark = fresh.bookmark
        return DirectoryIndexEntry(path=result.path, bookmark=bookmark)

    async def run(self) -> List[PinnedFile]:
        index = self.service.index
        started_at = index.revision
        snapshot = index.list()

        files: List[PinnedFile] = []
        live: List[DirectoryIndexEntry] = []
        for entry in snapshot:
            try:
                located = await self._locate_directory(entry)
                if located is None:
                    continue
                paths = await self.service.get_pinned(located.path)
            except Exception as e:
                # Corrupt state in one directory must not abort the pass
                logger.warning(f"Skipping pinned directory {entry.path}: {e}")
                continue

            if not paths:
                continue
            live.append(located)

            for path in paths:
                try:
                    info = stat(path)
                except OSError:
                    # Vanished since get_pinned checked it
                    continue
                files.append(PinnedFile(file=info, source_dir=located.path))

        index.prune(live, since_revision=started_at)
        logger.debug(f"Reconciled {len(snapshot)} indexed directories: {len(live)} live, {len(files)} pins")
        return files
