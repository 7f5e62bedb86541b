from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from altfinder.pins.models import BookmarkResult, ResolveResult


class BookmarkBackend(ABC):
    """
    Strategy interface for creating and resolving bookmarks.

    Backends never raise for per-item failures: every outcome is carried
    in the returned BookmarkResult / ResolveResult.
    """

    name: str = "base"

    @abstractmethod
    async def create(self, path: str) -> BookmarkResult:
        """Create a bookmark for a file or directory."""
        pass

    @abstractmethod
    async def resolve(self, token: str) -> ResolveResult:
        """Re-locate the object a bookmark was created for."""
        pass

    async def batch_create(self, paths: List[str]) -> Dict[str, str]:
        """Create bookmarks for many paths; failures are absent from the map."""
        tokens: Dict[str, str] = {}
        for path in paths:
            result = await self.create(path)
            if result.ok:
                tokens[path] = result.bookmark
        return tokens

    def claims(self, token: str) -> bool:
        """Whether this backend understands the token format."""
        return True

    def identity(self, token: str) -> Optional[str]:
        """Stable identity of the bookmarked object, if the format carries one."""
        return None
