"""
Bootstrap helpers for AltFinder applications.

Simplifies application setup and initialization.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Type

from loguru import logger

from .base_system import BaseSystem
from .config import ConfigManager
from .locator import ServiceLocator


class SystemBundle(ABC):
    """A reusable group of systems registered together."""

    @abstractmethod
    def register(self, builder: "ApplicationBuilder") -> None:
        pass


class ApplicationBuilder:
    """
    Fluent builder for AltFinder applications.

    Example:
        locator = await (ApplicationBuilder("AltFinder", "config.json")
                         .with_logging()
                         .add_bundle(PinsBundle())
                         .build())
    """

    def __init__(self, name: str = "AltFinder", config_path: str = "config.json",
                 config: Optional[ConfigManager] = None):
        """
        Initialize application builder.

        Args:
            name: Application name
            config_path: Path to config.json file
            config: Pre-built ConfigManager (skips loading config_path)
        """
        self.name = name
        self.config_path = config_path
        self.config = config
        self._systems: List[Type[BaseSystem]] = []
        self._logging_configured = False
        self._debug_override: Optional[bool] = None
        self._quiet = False

    def add_system(self, system_cls: Type[BaseSystem]):
        """
        Register additional custom system.

        Returns:
            Self for chaining
        """
        if system_cls not in self._systems:
            self._systems.append(system_cls)
        return self

    def add_bundle(self, bundle: SystemBundle):
        """
        Register every system of a bundle.

        Returns:
            Self for chaining
        """
        bundle.register(self)
        return self

    def with_logging(self, enable: bool = True, debug: Optional[bool] = None, quiet: bool = False):
        """
        Configure loguru sinks from the general settings when building.

        Args:
            enable: Set up logging at all
            debug: Override ``general.debug_mode``
            quiet: Console shows warnings and errors only

        Returns:
            Self for chaining
        """
        self._logging_configured = enable
        self._debug_override = debug
        self._quiet = quiet
        return self

    async def build(self) -> ServiceLocator:
        """
        Create a locator, register every system and start them.

        Returns:
            ServiceLocator with its systems started (failures are logged)
        """
        config = self.config or ConfigManager(self.config_path)

        if self._logging_configured:
            from .logging import setup_logging
            general = config.data.general
            debug = general.debug_mode if self._debug_override is None else self._debug_override
            setup_logging(debug, general.log_dir, general.log_to_file, quiet=self._quiet)
            logger.info(f"Starting {self.name}")

        locator = ServiceLocator(config)
        for sys_cls in self._systems:
            locator.register_system(sys_cls)

        await locator.start_all()

        return locator
