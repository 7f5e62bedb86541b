"""
Pins - Bookmark Resolver

Single entry point for bookmark creation and resolution. Picks the
configured backend and degrades to the native inode format when the
stronger backend cannot produce a token.
"""
from typing import Dict, List, Optional

from loguru import logger

from altfinder.core.base_system import BaseSystem
from altfinder.pins.bookmarks.base import BookmarkBackend
from altfinder.pins.bookmarks.helper import HelperBookmarkBackend
from altfinder.pins.bookmarks.inode import InodeBookmarkBackend
from altfinder.pins.models import BookmarkResult, ResolveResult


class BookmarkResolver(BaseSystem):
    """
    Stateless bookmark utility.

    Never raises for a bad path or token: failures come back as results
    with ``error`` set, and batch creation simply omits failed paths.
    """

    async def initialize(self) -> None:
        settings = self.config.data.bookmarks
        native = InodeBookmarkBackend(search_depth=settings.search_depth)
        if settings.backend == "helper":
            primary = HelperBookmarkBackend(
                settings.helper_command,
                timeout=settings.timeout,
                batch_timeout=settings.batch_timeout,
            )
            self.set_backends(primary, fallback=native)
        else:
            self.set_backends(native)
        logger.info(f"BookmarkResolver ready (backend={self._primary.name})")
        await super().initialize()

    async def shutdown(self) -> None:
        await super().shutdown()

    def set_backends(self, primary: BookmarkBackend, fallback: Optional[BookmarkBackend] = None) -> None:
        self._primary = primary
        self._fallback = fallback

    @property
    def backends(self) -> List[BookmarkBackend]:
        return [b for b in (self._primary, self._fallback) if b is not None]

    async def create(self, path: str) -> BookmarkResult:
        result = await self._primary.create(path)
        if result.ok or self._fallback is None:
            if not result.ok:
                logger.debug(f"Bookmark creation failed for {path}: {result.error}")
            return result

        logger.debug(f"{self._primary.name} bookmark failed for {path} ({result.error}), falling back")
        return await self._fallback.create(path)

    def _backend_for(self, token: str) -> Optional[BookmarkBackend]:
        # Native tokens are self-describing; anything else belongs to the helper
        native = [b for b in self.backends if isinstance(b, InodeBookmarkBackend)]
        for backend in native:
            if backend.claims(token):
                return backend
        for backend in self.backends:
            if backend not in native:
                return backend
        return None

    async def resolve(self, token: str) -> ResolveResult:
        backend = self._backend_for(token)
        if backend is None:
            return ResolveResult(bookmark=token, error="Invalid bookmark data")
        return await backend.resolve(token)

    async def batch_create(self, paths: List[str]) -> Dict[str, str]:
        tokens = await self._primary.batch_create(paths)
        if self._fallback is not None:
            missing = [p for p in paths if p not in tokens]
            if missing:
                tokens.update(await self._fallback.batch_create(missing))
        return tokens

    def identity(self, token: Optional[str]) -> Optional[str]:
        """Identity key for a token, or None when the format has none."""
        if not token:
            return None
        for backend in self.backends:
            key = backend.identity(token)
            if key:
                return key
        return None
