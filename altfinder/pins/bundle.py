"""
Pins System Bundle.

Groups the pins services for registration with ApplicationBuilder.
"""
from typing import TYPE_CHECKING

from altfinder.core.bootstrap import SystemBundle

if TYPE_CHECKING:
    from altfinder.core.bootstrap import ApplicationBuilder


class PinsBundle(SystemBundle):
    """
    Bundle containing the pins services in dependency order.

    Example:
        builder = (ApplicationBuilder("AltFinder", "config.json")
                   .add_bundle(PinsBundle()))
    """

    def register(self, builder: "ApplicationBuilder") -> None:
        from altfinder.core.settings_store import SettingsStore
        from altfinder.pins.bookmarks import BookmarkResolver
        from altfinder.pins.manifest_store import ManifestStore
        from altfinder.pins.pin_index import PinIndex
        from altfinder.pins.service import PinService

        builder.add_system(SettingsStore)
        builder.add_system(BookmarkResolver)
        builder.add_system(ManifestStore)
        builder.add_system(PinIndex)       # Needs SettingsStore + BookmarkResolver
        builder.add_system(PinService)
