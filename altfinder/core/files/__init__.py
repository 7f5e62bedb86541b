"""
File helpers shared by the stores and the pin service.

- write_json_atomic: crash-safe JSON persistence (temp file + os.replace)
- FileInfo / stat / list_dir: directory listing collaborators
"""
from .atomic import write_json_atomic, read_json
from .info import FileInfo, stat, list_dir

__all__ = ["write_json_atomic", "read_json", "FileInfo", "stat", "list_dir"]
