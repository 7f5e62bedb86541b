"""
Bookmarks created by an external OS-integration helper.

The helper is any executable that accepts
``create <path>``, ``resolve <token>`` or ``batch-create <json array>``
and prints JSON BookmarkResult / ResolveResult values on stdout
(for example a small macOS program wrapping NSURL bookmark data).
Batch results are positional, one per requested path.
Every call has a hard timeout; a timed-out helper is killed.
"""
import asyncio
import json
from typing import Dict, List, Optional, Sequence

from loguru import logger
from pydantic import ValidationError

from altfinder.pins.bookmarks.base import BookmarkBackend
from altfinder.pins.errors import BookmarkError
from altfinder.pins.models import BookmarkResult, ResolveResult


class HelperBookmarkBackend(BookmarkBackend):
    """Shells out to a helper process for OS-native bookmark data."""

    name = "helper"

    def __init__(self, command: Sequence[str], timeout: float = 5.0, batch_timeout: float = 15.0):
        if not command:
            raise ValueError("Helper command must not be empty")
        self.command = list(command)
        self.timeout = timeout
        self.batch_timeout = batch_timeout

    async def _run(self, args: List[str], timeout: float) -> str:
        """Run the helper and return stdout. Raises BookmarkError on any failure."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command, *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise BookmarkError(f"Bookmark helper unavailable: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise BookmarkError(f"Bookmark helper timed out after {timeout}s")

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise BookmarkError(f"Bookmark helper exited with {proc.returncode}: {message}")
        return stdout.decode("utf-8", errors="replace")

    async def create(self, path: str) -> BookmarkResult:
        try:
            out = await self._run(["create", path], self.timeout)
            return BookmarkResult.model_validate_json(out)
        except BookmarkError as e:
            return BookmarkResult(path=path, error=str(e))
        except ValidationError as e:
            return BookmarkResult(path=path, error=f"Malformed helper output: {e.error_count()} errors")

    async def resolve(self, token: str) -> ResolveResult:
        try:
            out = await self._run(["resolve", token], self.timeout)
            return ResolveResult.model_validate_json(out)
        except BookmarkError as e:
            return ResolveResult(bookmark=token, error=str(e))
        except ValidationError as e:
            return ResolveResult(bookmark=token, error=f"Malformed helper output: {e.error_count()} errors")

    async def batch_create(self, paths: List[str]) -> Dict[str, str]:
        if not paths:
            return {}
        try:
            out = await self._run(["batch-create", json.dumps(paths)], self.batch_timeout)
            raw = json.loads(out)
        except BookmarkError as e:
            logger.warning(f"Batch bookmark creation failed for {len(paths)} paths: {e}")
            return {}
        except ValueError as e:
            logger.warning(f"Batch bookmark helper returned invalid JSON: {e}")
            return {}

        if not isinstance(raw, list) or len(raw) != len(paths):
            logger.warning(f"Batch bookmark helper did not return one result per path ({len(paths)} asked), ignoring")
            return {}

        tokens: Dict[str, str] = {}
        # Results are positional: the helper may report a canonical path
        # (e.g. /private/tmp for /tmp) that differs from what was asked for
        for path, item in zip(paths, raw):
            try:
                result = BookmarkResult.model_validate(item)
            except ValidationError:
                continue
            if result.ok:
                tokens[path] = result.bookmark
        return tokens

    def identity(self, token: str) -> Optional[str]:
        # Opaque OS data; equality of the raw token is the only identity we have
        return None
