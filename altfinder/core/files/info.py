"""
Filesystem listing collaborators.

Thin wrappers over os.stat / os.scandir returning FileInfo models. Pins
resolve to FileInfo through ``stat`` and directory views are built from
``list_dir``, which never shows sidecar files.
"""
import os
import stat as stat_mod
from typing import Iterable, List

from loguru import logger
from pydantic import BaseModel


class FileInfo(BaseModel):
    """Snapshot of one filesystem entry."""
    name: str
    path: str
    is_directory: bool
    size: int = 0
    modified_time: float = 0.0
    created_time: float = 0.0
    extension: str = ""


def _from_stat(path: str, st: os.stat_result) -> FileInfo:
    name = os.path.basename(path.rstrip(os.sep)) or path
    is_dir = stat_mod.S_ISDIR(st.st_mode)
    created = getattr(st, "st_birthtime", st.st_ctime)
    return FileInfo(
        name=name,
        path=path,
        is_directory=is_dir,
        size=st.st_size,
        modified_time=st.st_mtime,
        created_time=created,
        extension="" if is_dir else os.path.splitext(name)[1].lower(),
    )


def stat(path: str) -> FileInfo:
    """Stat a path. Raises OSError if it does not exist."""
    return _from_stat(path, os.stat(path))


def list_dir(path: str, show_hidden: bool = False, exclude: Iterable[str] = ()) -> List[FileInfo]:
    """
    List a directory's entries.

    Args:
        path: Directory to list
        show_hidden: Include dot-files
        exclude: Names that are never listed (e.g. the pin manifest)

    Returns:
        FileInfo for every visible entry, in name order
    """
    excluded = set(exclude)
    items: List[FileInfo] = []
    with os.scandir(path) as it:
        for entry in it:
            if entry.name in excluded:
                continue
            if not show_hidden and entry.name.startswith("."):
                continue
            try:
                items.append(_from_stat(entry.path, entry.stat()))
            except OSError as e:
                # Vanished between scandir and stat
                logger.debug(f"Skipping {entry.path}: {e}")
    items.sort(key=lambda i: i.name.lower())
    return items
