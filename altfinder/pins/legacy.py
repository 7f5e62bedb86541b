"""
Pins - Legacy Migration

One-time startup sweep from the settings-store era into manifests:

- ``pinnedFiles``: {directory: [full paths]} -> one manifest per directory
  (an existing manifest always wins and is never overwritten)
- ``pinnedDirectories``: [directory paths] -> pin index rows

Gated by the ``migratedToManifest`` flag. Legacy keys are left in place.
"""
import os
from typing import TYPE_CHECKING

from loguru import logger

from altfinder.core.settings_store import SettingsStore

if TYPE_CHECKING:
    from altfinder.pins.service import PinService

LEGACY_FILES_KEY = "pinnedFiles"
LEGACY_DIRECTORIES_KEY = "pinnedDirectories"
MIGRATED_FLAG = "migratedToManifest"


class LegacyPinMigration:

    def __init__(self, service: "PinService", store: SettingsStore):
        self.service = service
        self.store = store

    async def run(self) -> int:
        """
        Run the sweep if it has not run yet.

        Returns:
            Number of manifests created
        """
        if self.store.get(MIGRATED_FLAG, False):
            return 0

        created = await self._migrate_pinned_files()
        await self._migrate_directory_list()

        try:
            self.store.set(MIGRATED_FLAG, True)
        except OSError as e:
            # Sweep is idempotent, so it simply runs again next start
            logger.error(f"Could not record legacy migration flag: {e}")
        logger.info(f"Legacy pin migration complete ({created} manifests created)")
        return created

    async def _migrate_pinned_files(self) -> int:
        legacy = self.store.get(LEGACY_FILES_KEY, {}) or {}
        if not isinstance(legacy, dict):
            logger.warning(f"Ignoring malformed legacy '{LEGACY_FILES_KEY}' value")
            return 0

        created = 0
        for directory, paths in legacy.items():
            if not isinstance(paths, list) or not paths:
                continue
            if not os.path.isdir(directory):
                logger.debug(f"Legacy pins for missing directory {directory} skipped")
                continue

            manifests = self.service.manifests
            if manifests.exists(directory):
                existing = await manifests.read(directory)
                if existing is not None and existing.pinned:
                    dir_bookmark = await self.service.bookmarks.create(directory)
                    self.service.index.record_directory(directory, dir_bookmark.bookmark if dir_bookmark.ok else None)
                continue

            names = [p for p in paths if isinstance(p, str)]
            if await self.service.set_pinned(directory, names):
                created += 1
        return created

    async def _migrate_directory_list(self) -> None:
        legacy = self.store.get(LEGACY_DIRECTORIES_KEY, []) or []
        if not isinstance(legacy, list):
            logger.warning(f"Ignoring malformed legacy '{LEGACY_DIRECTORIES_KEY}' value")
            return

        for directory in legacy:
            if not isinstance(directory, str):
                continue
            result = await self.service.bookmarks.create(directory)
            # Dead rows are dropped by the next reconciliation pass
            self.service.index.record_directory(directory, result.bookmark if result.ok else None)
