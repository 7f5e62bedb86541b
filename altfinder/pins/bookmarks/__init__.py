from .base import BookmarkBackend
from .inode import InodeBookmarkBackend
from .helper import HelperBookmarkBackend
from .resolver import BookmarkResolver

__all__ = ["BookmarkBackend", "InodeBookmarkBackend", "HelperBookmarkBackend", "BookmarkResolver"]
