from typing import Any, List
import json
import os
from pydantic import BaseModel, Field
from loguru import logger
from .events import Signal


def _default_settings_path() -> str:
    return os.path.join(os.path.expanduser("~"), ".config", "altfinder", "settings.json")


# --- Settings Models ---
class GeneralSettings(BaseModel):
    debug_mode: bool = False
    log_dir: str = "logs"
    log_to_file: bool = False

class PinsSettings(BaseModel):
    manifest_name: str = ".manifest.json"
    settings_path: str = Field(default_factory=_default_settings_path)
    heal_on_read: bool = True  # Rewrite manifest entries found via bookmark
    legacy_sweep_on_start: bool = True

class BookmarkSettings(BaseModel):
    backend: str = "inode"  # "inode" | "helper"
    helper_command: List[str] = Field(default_factory=lambda: ["altfinder-bookmark-helper"])
    timeout: float = 5.0
    batch_timeout: float = 15.0
    search_depth: int = 2

class AppConfig(BaseModel):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    pins: PinsSettings = Field(default_factory=PinsSettings)
    bookmarks: BookmarkSettings = Field(default_factory=BookmarkSettings)


_ALLOWED_BACKENDS = {"inode", "helper"}

# (env var, section, key)
_ENV_OVERRIDES = [
    ("ALTFINDER_BOOKMARK_BACKEND", "bookmarks", "backend"),
    ("ALTFINDER_SETTINGS_PATH", "pins", "settings_path"),
]


# --- Manager ---
class ConfigManager:
    """
    Manages application configuration with persistence and reactivity.
    """
    def __init__(self, filepath: str = "config.json"):
        self.filepath = filepath
        self._data = AppConfig()
        self.on_changed = Signal("ConfigChanged")
        self._load()
        self._apply_env_overrides()

    @property
    def data(self) -> AppConfig:
        return self._data

    def update(self, section: str, key: str, value: Any):
        """Update a setting, validate via Pydantic, autosave, and emit change event."""
        if not hasattr(self._data, section):
            raise ValueError(f"Invalid section: {section}")

        section_obj = getattr(self._data, section)
        if not hasattr(section_obj, key):
            raise ValueError(f"Invalid key: {key} in section {section}")

        if section == "bookmarks" and key == "backend" and value not in _ALLOWED_BACKENDS:
            raise ValueError(f"Unsupported bookmark backend: {value}")

        setattr(section_obj, key, value)
        self._save()
        self.on_changed.emit(section, key, value)

    def get(self, section: str, key: str) -> Any:
        section_obj = getattr(self._data, section)
        return getattr(section_obj, key)

    def _apply_env_overrides(self):
        for env_name, section, key in _ENV_OVERRIDES:
            value = os.getenv(env_name)
            if not value:
                continue
            if section == "bookmarks" and key == "backend" and value not in _ALLOWED_BACKENDS:
                logger.warning(f"Ignoring {env_name}={value}: unsupported bookmark backend")
                continue
            setattr(getattr(self._data, section), key, value)

    def _load(self):
        """Load settings from JSON or TOML file if present; otherwise keep defaults."""
        if os.path.isfile(self.filepath):
            try:
                if self.filepath.endswith('.toml'):
                    import tomllib
                    with open(self.filepath, "rb") as f:
                        raw = tomllib.load(f)
                else:
                    with open(self.filepath, "r", encoding="utf-8") as f:
                        raw = json.load(f)
                self._data = AppConfig.model_validate(raw)
            except Exception as e:
                logger.error(f"Failed to load config from {self.filepath}: {e}")
                self._save()
        else:
            self._save()

    def _save(self):
        """Persist current config to JSON file."""
        if self.filepath.endswith('.toml'):
            # TOML is read-only input
            return
        try:
            dirname = os.path.dirname(self.filepath)
            if dirname:
                os.makedirs(dirname, exist_ok=True)
            with open(self.filepath, "w", encoding="utf-8") as f:
                json.dump(self._data.model_dump(), f, indent=4)
        except Exception as e:
            logger.error(f"Failed to save config to {self.filepath}: {e}")
