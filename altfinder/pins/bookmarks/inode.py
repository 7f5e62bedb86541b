"""
Native bookmarks built from filesystem identity.

A token is base64-encoded JSON holding the path at creation time, the
(st_dev, st_ino) pair and a fingerprint of metadata that rename() leaves
alone: the entry type, the birth time where the platform reports one and,
for files, the modification time. Inode numbers are reused as soon as they
are freed, so a hit only counts when the fingerprint matches too.
Resolution scans a bounded neighbourhood of the original location.
"""
import base64
import binascii
import json
import os
import stat as stat_mod
from typing import Iterator, Optional

from loguru import logger

from altfinder.pins.bookmarks.base import BookmarkBackend
from altfinder.pins.errors import BookmarkError
from altfinder.pins.models import BookmarkResult, ResolveResult

TOKEN_VERSION = 1
KIND_INODE = "inode"
KIND_PATH = "path"


def encode_token(payload: dict) -> str:
    raw = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_token(token: str) -> dict:
    """Decode a native token. Raises BookmarkError for anything else."""
    try:
        raw = base64.b64decode(token.encode("ascii"), validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise BookmarkError(f"Invalid bookmark data: {e}") from e
    if not isinstance(payload, dict) or payload.get("v") != TOKEN_VERSION:
        raise BookmarkError("Invalid bookmark data: unknown format")
    if payload.get("kind") not in (KIND_INODE, KIND_PATH) or not isinstance(payload.get("path"), str):
        raise BookmarkError("Invalid bookmark data: missing fields")
    return payload


def fingerprint(st: os.stat_result) -> dict:
    """Metadata that survives rename() but not delete-and-recreate."""
    is_dir = stat_mod.S_ISDIR(st.st_mode)
    result = {"is_dir": is_dir}
    birth = getattr(st, "st_birthtime", None)
    if birth is not None:
        result["birth"] = birth
    if not is_dir:
        # Directory mtimes move whenever an entry (the manifest included) changes
        result["mtime_ns"] = st.st_mtime_ns
    return result


def same_object(st: os.stat_result, payload: dict) -> bool:
    """Whether ``st`` describes the object the token was created for."""
    if (st.st_dev, st.st_ino) != (payload.get("dev"), payload.get("ino")):
        return False
    current = fingerprint(st)
    if "is_dir" in payload and current["is_dir"] != payload["is_dir"]:
        return False
    # Fields missing on either side (older tokens, other platforms) are not compared
    for key in ("birth", "mtime_ns"):
        if key in payload and key in current and payload[key] != current[key]:
            return False
    return True


class InodeBookmarkBackend(BookmarkBackend):
    """
    Bookmarks keyed by device and inode number plus a metadata fingerprint.

    Falls back to a path-only token when the object's identity cannot be
    read, so creation degrades instead of failing.
    """

    name = KIND_INODE

    def __init__(self, search_depth: int = 2):
        """
        Args:
            search_depth: How many ancestor levels above the original parent
                are scanned (one level deep) when looking for a moved object
        """
        self.search_depth = max(0, search_depth)

    async def create(self, path: str) -> BookmarkResult:
        path = os.path.abspath(path)
        try:
            st = os.stat(path)
        except OSError as e:
            return BookmarkResult(path=path, bookmark=None, error=str(e))

        payload = {"v": TOKEN_VERSION, "path": path, **fingerprint(st)}
        if st.st_ino:
            payload.update(kind=KIND_INODE, dev=st.st_dev, ino=st.st_ino)
        else:
            # Filesystems without stable inode numbers
            payload.update(kind=KIND_PATH)
        return BookmarkResult(path=path, bookmark=encode_token(payload))

    async def resolve(self, token: str) -> ResolveResult:
        try:
            payload = decode_token(token)
        except BookmarkError as e:
            return ResolveResult(bookmark=token, error=str(e))

        original = payload["path"]
        if payload["kind"] == KIND_PATH:
            if os.path.exists(original):
                return ResolveResult(bookmark=token, path=original)
            return ResolveResult(bookmark=token, error=f"No such file or directory: {original}")

        st = self._stat(original)
        if st is not None and same_object(st, payload):
            return ResolveResult(bookmark=token, path=original, stale=False)

        found = self._search(original, payload)
        if found:
            logger.debug(f"Bookmark for {original} now resolves to {found}")
            return ResolveResult(bookmark=token, path=found, stale=True)

        if st is not None:
            # Replaced in place (e.g. an editor's save-by-rename)
            return ResolveResult(bookmark=token, path=original, stale=True)

        return ResolveResult(bookmark=token, error=f"Bookmarked object not found: {original}")

    def claims(self, token: str) -> bool:
        try:
            decode_token(token)
        except BookmarkError:
            return False
        return True

    def identity(self, token: str) -> Optional[str]:
        try:
            payload = decode_token(token)
        except BookmarkError:
            return None
        if payload["kind"] != KIND_INODE:
            return None
        return f"{payload['dev']}:{payload['ino']}"

    # ==================== Search ====================

    @staticmethod
    def _stat(path: str) -> Optional[os.stat_result]:
        try:
            return os.stat(path)
        except OSError:
            return None

    @staticmethod
    def _subdirectories(directory: str, skip: Optional[str] = None) -> Iterator[str]:
        try:
            with os.scandir(directory) as it:
                found = [e.path for e in it if e.path != skip and e.is_dir(follow_symlinks=False)]
        except OSError:
            return
        yield from sorted(found)

    def _search_roots(self, original: str) -> Iterator[str]:
        """Original parent and its subfolders, then each ancestor and its other subfolders."""
        parent = os.path.dirname(original)
        yield parent
        yield from self._subdirectories(parent, skip=original)
        current = parent
        for _ in range(self.search_depth):
            upper = os.path.dirname(current)
            if upper == current:
                return
            yield upper
            yield from self._subdirectories(upper, skip=current)
            current = upper

    def _search(self, original: str, payload: dict) -> Optional[str]:
        seen = set()
        for root in self._search_roots(original):
            if root in seen:
                continue
            seen.add(root)
            try:
                with os.scandir(root) as it:
                    for entry in it:
                        try:
                            st = entry.stat(follow_symlinks=False)
                        except OSError:
                            continue
                        if same_object(st, payload):
                            return entry.path
            except OSError:
                continue
        return None
