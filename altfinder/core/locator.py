from collections import deque
from typing import Dict, List, Type, TypeVar

from loguru import logger

from .config import ConfigManager
from .base_system import BaseSystem

T = TypeVar('T', bound=BaseSystem)


class ServiceLocator:
    """
    Registry of the systems of one application instance.

    Systems are started in ``depends_on`` order and stopped in the reverse
    of the order they actually started. A system whose dependency failed
    to start is not started at all.
    """

    def __init__(self, config: ConfigManager):
        self.config = config
        self._systems: Dict[Type[BaseSystem], BaseSystem] = {}
        self._started: List[BaseSystem] = []

    def register_system(self, system_cls: Type[T]) -> T:
        """Instantiate and register a system. Registering twice returns the first instance."""
        if system_cls in self._systems:
            return self._systems[system_cls]

        logger.debug(f"Registering system: {system_cls.__name__}")
        instance = system_cls(self, self.config)
        self._systems[system_cls] = instance
        return instance

    def get_system(self, system_cls: Type[T]) -> T:
        if system_cls not in self._systems:
            raise KeyError(f"System {system_cls.__name__} not registered.")
        return self._systems[system_cls]

    def _start_order(self) -> List[Type[BaseSystem]]:
        # Kahn's algorithm over registered classes; unknown dependencies are ignored
        dependents: Dict[Type[BaseSystem], List[Type[BaseSystem]]] = {cls: [] for cls in self._systems}
        pending = {cls: 0 for cls in self._systems}
        for cls in self._systems:
            for dep in cls.depends_on:
                if dep in self._systems:
                    dependents[dep].append(cls)
                    pending[cls] += 1

        ready = deque(cls for cls, count in pending.items() if count == 0)
        order: List[Type[BaseSystem]] = []
        while ready:
            cls = ready.popleft()
            order.append(cls)
            for dependent in dependents[cls]:
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    ready.append(dependent)

        if len(order) != len(self._systems):
            logger.warning("Circular system dependency, falling back to registration order")
            return list(self._systems)
        return order

    async def start_all(self) -> List[Type[BaseSystem]]:
        """
        Initialize every registered system.

        Returns:
            Classes that failed to start or were skipped because a
            dependency failed
        """
        logger.info(f"Starting {len(self._systems)} systems")
        failed: List[Type[BaseSystem]] = []
        for cls in self._start_order():
            broken = [dep.__name__ for dep in cls.depends_on if dep in failed]
            if broken:
                logger.error(f"Not starting {cls.__name__}: dependency {', '.join(broken)} failed")
                failed.append(cls)
                continue
            system = self._systems[cls]
            try:
                await system.initialize()
            except Exception as e:
                logger.error(f"Failed to start system {cls.__name__}: {e}")
                failed.append(cls)
                continue
            self._started.append(system)
            logger.info(f"System {cls.__name__} started.")
        return failed

    async def stop_all(self) -> None:
        """Shut down started systems, last started first."""
        while self._started:
            system = self._started.pop()
            try:
                await system.shutdown()
                logger.info(f"System {system.__class__.__name__} stopped.")
            except Exception as e:
                logger.error(f"Failed to stop system {system.__class__.__name__}: {e}")
