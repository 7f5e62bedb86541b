"""
AltFinder Core - Application Infrastructure.

Provides core systems for building the file manager:
- ServiceLocator: Dependency injection and system management
- BaseSystem: Abstract base for all systems
- ConfigManager: Configuration with persistence
- Signal: Synchronous observer notifications
- SettingsStore: Application-wide key-value settings

Usage:
    from altfinder.core import ApplicationBuilder

    locator = await ApplicationBuilder("AltFinder", "config.json").add_system(MyService).build()
"""
from .base_system import BaseSystem
from .locator import ServiceLocator
from .config import (
    ConfigManager,
    AppConfig,
    GeneralSettings,
    PinsSettings,
    BookmarkSettings,
)
from .events import Signal
from .settings_store import SettingsStore
from .bootstrap import ApplicationBuilder, SystemBundle

__all__ = [
    "BaseSystem",
    "ServiceLocator",
    "ConfigManager",
    "AppConfig",
    "GeneralSettings",
    "PinsSettings",
    "BookmarkSettings",
    "Signal",
    "SettingsStore",
    "ApplicationBuilder",
    "SystemBundle",
]
