"""Pins error taxonomy."""
from typing import Optional


class PinError(Exception):
    """Base error for the pins subsystem."""


class ManifestWriteError(PinError):
    """A manifest could not be persisted. The previous file is intact."""

    def __init__(self, directory: str, cause: Optional[BaseException] = None):
        self.directory = directory
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to write pin manifest in {directory}{detail}")


class BookmarkError(PinError):
    """Raised inside bookmark backends; converted to result errors by the resolver."""
