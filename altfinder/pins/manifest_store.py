"""
Pins - Manifest Store

Owns the per-directory sidecar file: its JSON shape, schema migration and
crash-safe persistence.
"""
import os
from typing import Optional, Union

from loguru import logger
from pydantic import ValidationError

from altfinder.core.base_system import BaseSystem
from altfinder.core.files import read_json, write_json_atomic
from altfinder.pins.errors import ManifestWriteError
from altfinder.pins.models import ManifestV1, ManifestV2, manifest_adapter, migrate


class ManifestStore(BaseSystem):
    """
    Reads and writes ``<directory>/<manifest_name>``.

    - read: absent or corrupt file -> None (logged, never raised)
    - write: temp file + rename; failure raises ManifestWriteError and
      leaves the previous manifest untouched
    - migrate: pure v1 -> v2 upgrade, applied on read
    """

    async def initialize(self) -> None:
        self.manifest_name = self.config.data.pins.manifest_name
        logger.info(f"ManifestStore ready (manifest file: {self.manifest_name})")
        await super().initialize()

    async def shutdown(self) -> None:
        await super().shutdown()

    def manifest_path(self, directory: str) -> str:
        return os.path.join(directory, self.manifest_name)

    def parse(self, raw) -> Optional[Union[ManifestV1, ManifestV2]]:
        """Validate a decoded JSON document into a tagged manifest."""
        try:
            return manifest_adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning(f"Manifest does not match a known schema: {e.error_count()} errors")
            return None

    async def read(self, directory: str) -> Optional[ManifestV2]:
        """
        Load a directory's manifest, upgraded to the current schema.

        Older schemas are migrated in memory and rewritten in place so the
        next read finds the current format. A failed in-place rewrite is
        logged; the migrated manifest is still returned.

        Returns:
            ManifestV2, or None if there is no usable manifest
        """
        path = self.manifest_path(directory)
        if not os.path.isfile(path):
            return None

        try:
            raw = read_json(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable manifest {path}, treating as absent: {e}")
            return None

        manifest = self.parse(raw)
        if manifest is None:
            logger.warning(f"Ignoring manifest {path}")
            return None

        if isinstance(manifest, ManifestV1):
            upgraded = migrate(manifest)
            logger.info(f"Migrating manifest {path} from v{manifest.version} to v{upgraded.version}")
            try:
                await self.write(directory, upgraded)
            except ManifestWriteError as e:
                logger.warning(f"In-place migration not persisted: {e}")
            return upgraded

        return manifest

    async def write(self, directory: str, manifest: ManifestV2) -> None:
        """
        Persist a manifest. Raises ManifestWriteError on failure.
        """
        path = self.manifest_path(directory)
        try:
            write_json_atomic(path, manifest.model_dump(mode="json"))
        except OSError as e:
            logger.error(f"Failed to write manifest {path}: {e}")
            raise ManifestWriteError(directory, e) from e
        logger.debug(f"Wrote manifest {path} ({len(manifest.pinned)} pins)")

    async def delete(self, directory: str) -> None:
        """Remove a directory's manifest. Missing file is fine."""
        path = self.manifest_path(directory)
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise ManifestWriteError(directory, e) from e
        logger.debug(f"Removed manifest {path}")

    def exists(self, directory: str) -> bool:
        return os.path.isfile(self.manifest_path(directory))

    @staticmethod
    def migrate(manifest: Union[ManifestV1, ManifestV2]) -> ManifestV2:
        return migrate(manifest)
