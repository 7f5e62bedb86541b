"""
Application-wide key-value settings store.

JSON document persisted next to the user's config. Holds the global pin
index and the legacy pin keys read by the one-time manifest sweep.
"""
import copy
import os
from typing import Any, Dict, List

from loguru import logger

from .base_system import BaseSystem
from .files import read_json, write_json_atomic


class SettingsStore(BaseSystem):
    """
    Key-value store backed by a single JSON file.

    Values are deep-copied on the way in and out so callers can never
    mutate the persisted state behind the store's back.
    """

    async def initialize(self) -> None:
        self.path = os.path.expanduser(self.config.data.pins.settings_path)
        self._data: Dict[str, Any] = {}
        self._load()
        logger.info(f"SettingsStore ready ({len(self._data)} keys from {self.path})")
        await super().initialize()

    async def shutdown(self) -> None:
        await super().shutdown()

    def _load(self) -> None:
        if not os.path.isfile(self.path):
            return
        try:
            raw = read_json(self.path)
        except (OSError, ValueError) as e:
            logger.warning(f"Settings file {self.path} unreadable, starting empty: {e}")
            return
        if not isinstance(raw, dict):
            logger.warning(f"Settings file {self.path} is not an object, starting empty")
            return
        self._data = raw

    def _save(self) -> None:
        dirname = os.path.dirname(self.path)
        if dirname:
            os.makedirs(dirname, exist_ok=True)
        write_json_atomic(self.path, self._data)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        """Set a key and persist. Raises OSError if the file cannot be written."""
        self._data[key] = copy.deepcopy(value)
        self._save()

    def delete(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._save()

    def keys(self) -> List[str]:
        return list(self._data.keys())
