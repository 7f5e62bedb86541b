"""
Pins - Pin Service

Facade over the manifest store, the pin index and the bookmark resolver.
This is the API the UI talks to.
"""
import asyncio
import os
from typing import Dict, List, Optional, Tuple

from loguru import logger

from altfinder.core.base_system import BaseSystem
from altfinder.core.events import Signal
from altfinder.core.files import list_dir
from altfinder.core.settings_store import SettingsStore
from altfinder.pins.bookmarks import BookmarkResolver
from altfinder.pins.errors import ManifestWriteError
from altfinder.pins.manifest_store import ManifestStore
from altfinder.pins.models import DirectoryListing, ManifestV2, PinnedEntry, PinnedFile
from altfinder.pins.pin_index import PinIndex, normalize_dir


class PinService(BaseSystem):
    """
    Get/set/add/remove pins for a directory and build the global view.

    Mutations on one directory are serialized through a per-directory
    asyncio.Lock; different directories proceed independently.

    Signals:
        on_pins_changed(directory, names): after a successful write
        on_error(directory, message): a pin/unpin could not be persisted
    """

    depends_on = [SettingsStore, BookmarkResolver, ManifestStore, PinIndex]

    def __init__(self, locator, config):
        super().__init__(locator, config)
        self.on_pins_changed = Signal("PinsChanged")
        self.on_error = Signal("PinsError")
        self._locks: Dict[str, asyncio.Lock] = {}

    async def initialize(self) -> None:
        logger.info("PinService initializing")
        self.manifests = self.locator.get_system(ManifestStore)
        self.index = self.locator.get_system(PinIndex)
        self.bookmarks = self.locator.get_system(BookmarkResolver)

        from altfinder.pins.reconcile import Reconciler
        self._reconciler = Reconciler(self)

        if self.config.data.pins.legacy_sweep_on_start:
            from altfinder.pins.legacy import LegacyPinMigration
            await LegacyPinMigration(self, self.locator.get_system(SettingsStore)).run()

        await super().initialize()
        logger.info("PinService ready")

    async def shutdown(self) -> None:
        self._locks.clear()
        await super().shutdown()

    def lock_for(self, directory: str) -> asyncio.Lock:
        key = normalize_dir(directory)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    # ==================== Reading ====================

    async def _locate(self, directory: str, entry: PinnedEntry) -> Tuple[Optional[str], bool]:
        """
        Find an entry on disk.

        Returns:
            (path or None, needs_heal)
        """
        expected = os.path.join(directory, entry.name)
        if os.path.exists(expected):
            return expected, False
        if not entry.bookmark:
            return None, False

        result = await self.bookmarks.resolve(entry.bookmark)
        if not result.ok or not os.path.exists(result.path):
            logger.debug(f"Pinned entry {expected} is gone ({result.error or 'missing'})")
            return None, False

        renamed_here = os.path.dirname(result.path) == directory
        return result.path, renamed_here or result.stale

    async def _collect(self, directory: str) -> Tuple[List[Tuple[str, str]], Dict[str, str]]:
        """
        Resolve every manifest entry of a directory.

        Returns:
            ([(manifest name, live path)] in manifest order,
             {manifest name: new path} for entries that should be rewritten)
        """
        manifest = await self.manifests.read(directory)
        if manifest is None:
            return [], {}

        live: List[Tuple[str, str]] = []
        seen = set()
        heal: Dict[str, str] = {}
        for entry in manifest.pinned:
            path, needs_heal = await self._locate(directory, entry)
            if path is None or path in seen:
                continue
            seen.add(path)
            live.append((entry.name, path))
            if needs_heal:
                heal[entry.name] = path
        return live, heal

    async def _current_paths(self, directory: str) -> List[str]:
        live, _ = await self._collect(directory)
        return [path for _, path in live]

    async def get_pinned(self, directory: str) -> List[str]:
        """
        Current paths of a directory's pins, in display order.

        Entries whose file is gone (directly and via bookmark) are left
        out. Entries found through their bookmark under a new name are
        written back to the manifest when healing is enabled.
        """
        directory = normalize_dir(directory)
        live, heal = await self._collect(directory)
        if heal and self.config.data.pins.heal_on_read:
            await self._heal(directory, heal)
        return [path for _, path in live]

    async def _heal(self, directory: str, heal: Dict[str, str]) -> None:
        async with self.lock_for(directory):
            # Re-read: the manifest may have changed while bookmarks resolved
            manifest = await self.manifests.read(directory)
            if manifest is None:
                return
            entries: List[PinnedEntry] = []
            changed = False
            for entry in manifest.pinned:
                new_path = heal.get(entry.name)
                if new_path is None or not os.path.exists(new_path):
                    entries.append(entry)
                    continue
                fresh = await self.bookmarks.create(new_path)
                name = entry.name
                if os.path.dirname(new_path) == directory:
                    name = os.path.basename(new_path)
                entries.append(PinnedEntry(name=name, bookmark=fresh.bookmark if fresh.ok else entry.bookmark))
                changed = True
            if not changed:
                return
            try:
                await self.manifests.write(directory, ManifestV2(pinned=entries))
                logger.info(f"Refreshed {len(heal)} moved pins in {directory}")
            except ManifestWriteError as e:
                logger.warning(f"Could not refresh moved pins: {e}")

    async def is_pinned(self, directory: str, path: str) -> bool:
        directory = normalize_dir(directory)
        manifest = await self.manifests.read(directory)
        if manifest is None:
            return False
        return os.path.basename(path) in manifest.names

    # ==================== Writing ====================

    async def _write(self, directory: str, paths: List[str]) -> bool:
        """Persist ``paths`` as the directory's pins. Caller holds the lock."""
        names: List[str] = []
        sources: List[str] = []
        for path in paths:
            name = os.path.basename(path.rstrip(os.sep))
            if not name or name in names:
                continue
            names.append(name)
            sources.append(path)

        previous = await self.manifests.read(directory)
        tokens = await self.bookmarks.batch_create(sources)

        entries = []
        for name, source in zip(names, sources):
            bookmark = tokens.get(source)
            if bookmark is None and previous is not None:
                old = previous.entry(name)
                bookmark = old.bookmark if old else None
            entries.append(PinnedEntry(name=name, bookmark=bookmark))

        try:
            if entries:
                await self.manifests.write(directory, ManifestV2(pinned=entries))
            else:
                await self.manifests.delete(directory)
        except ManifestWriteError as e:
            logger.error(f"Pin update failed: {e}")
            self.on_error.emit(directory, str(e))
            return False

        if entries:
            dir_bookmark = await self.bookmarks.create(directory)
            self.index.record_directory(directory, dir_bookmark.bookmark if dir_bookmark.ok else None)
        else:
            self.index.remove_directory(directory)

        self.on_pins_changed.emit(directory, names)
        return True

    async def set_pinned(self, directory: str, paths: List[str]) -> bool:
        """
        Replace a directory's pins with ``paths`` (order is kept verbatim).

        Returns:
            True if persisted, False if the manifest could not be written
        """
        directory = normalize_dir(directory)
        async with self.lock_for(directory):
            return await self._write(directory, paths)

    async def add_pinned(self, directory: str, path: str) -> bool:
        """Append a pin. No-op if an entry with the same name is pinned."""
        directory = normalize_dir(directory)
        name = os.path.basename(path.rstrip(os.sep))
        async with self.lock_for(directory):
            live, _ = await self._collect(directory)
            known = {old for old, _ in live} | {os.path.basename(p) for _, p in live}
            if name in known:
                return True
            return await self._write(directory, [p for _, p in live] + [path])

    async def remove_pinned(self, directory: str, path: str) -> bool:
        """Remove a pin by name. Removing the last pin drops the directory from the index."""
        directory = normalize_dir(directory)
        name = os.path.basename(path.rstrip(os.sep))
        async with self.lock_for(directory):
            live, _ = await self._collect(directory)
            remaining = [
                p for old, p in live
                if old != name and os.path.basename(p) != name and p != path
            ]
            return await self._write(directory, remaining)

    async def reorder(self, directory: str, from_index: int, to_index: int) -> List[str]:
        """
        Move one pin to a new position.

        Returns:
            The resulting order (unchanged if indices are out of range)
        """
        directory = normalize_dir(directory)
        async with self.lock_for(directory):
            current = await self._current_paths(directory)
            if from_index == to_index or not (0 <= from_index < len(current)) or not (0 <= to_index < len(current)):
                return current
            item = current.pop(from_index)
            current.insert(to_index, item)
            if not await self._write(directory, current):
                current = await self._current_paths(directory)
            return current

    async def rename_pinned(self, directory: str, old_name: str, new_name: str) -> bool:
        """
        Follow an in-app rename: keep the entry's position, store the new
        name and a fresh bookmark.

        Returns:
            False if the entry was not pinned or the manifest could not be written
        """
        directory = normalize_dir(directory)
        async with self.lock_for(directory):
            manifest = await self.manifests.read(directory)
            if manifest is None or old_name not in manifest.names:
                return False
            fresh = await self.bookmarks.create(os.path.join(directory, new_name))
            entries = []
            for entry in manifest.pinned:
                if entry.name == old_name:
                    entries.append(PinnedEntry(name=new_name, bookmark=fresh.bookmark if fresh.ok else entry.bookmark))
                elif entry.name != new_name:
                    entries.append(entry)
            try:
                await self.manifests.write(directory, ManifestV2(pinned=entries))
            except ManifestWriteError as e:
                logger.error(f"Pin rename failed: {e}")
                self.on_error.emit(directory, str(e))
                return False
            self.on_pins_changed.emit(directory, [e.name for e in entries])
            return True

    # ==================== Views ====================

    async def list_directory(self, directory: str, show_hidden: bool = False) -> DirectoryListing:
        """
        A directory's entries split into pinned (manifest order) and unpinned.

        The manifest file is never listed. Raises OSError if the directory
        cannot be read.
        """
        directory = normalize_dir(directory)
        items = list_dir(directory, show_hidden=show_hidden, exclude=(self.manifests.manifest_name,))
        manifest = await self.manifests.read(directory)
        order = {name: i for i, name in enumerate(manifest.names if manifest else [])}

        pinned = sorted((i for i in items if i.name in order), key=lambda i: order[i.name])
        unpinned = [i for i in items if i.name not in order]
        return DirectoryListing(directory=directory, pinned=pinned, unpinned=unpinned)

    async def get_all_pinned(self) -> List[PinnedFile]:
        """Every live pin across all indexed directories. Prunes the index."""
        return await self._reconciler.run()
