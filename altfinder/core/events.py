"""
Synchronous notifications between systems and their front-ends.

PinService reports ``on_pins_changed`` / ``on_error`` through these; the
CLI and tests subscribe with plain callables.
"""
from typing import Callable, List

from loguru import logger


class Signal:
    """
    Named list of subscribers called in connection order.

    A failing subscriber is logged and skipped; it never breaks the
    emitter or the remaining subscribers.
    """

    def __init__(self, name: str = "Signal"):
        self.name = name
        self._subscribers: List[Callable] = []

    def connect(self, callback: Callable) -> Callable:
        """Subscribe ``callback`` (once). Returns it, so this works as a decorator."""
        if callback not in self._subscribers:
            self._subscribers.append(callback)
        return callback

    def disconnect(self, callback: Callable) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def emit(self, *args, **kwargs) -> int:
        """
        Call every subscriber with the given arguments.

        Returns:
            Number of subscribers that completed without raising
        """
        delivered = 0
        # Copy: subscribers may disconnect themselves while being called
        for callback in list(self._subscribers):
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Signal '{self.name}' subscriber {callback!r} failed: {e}")
                continue
            delivered += 1
        return delivered
