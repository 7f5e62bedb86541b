import json
import os
import tempfile
from typing import Any


def write_json_atomic(path: str, obj: Any) -> None:
    """Atomically write JSON to path using a temporary file and os.replace.

    The temporary file lives in the target directory so the final rename
    never crosses a filesystem. On failure the temporary file is removed
    and the error re-raised; the previous file at ``path`` is untouched.
    """
    directory = os.path.dirname(path) or "."
    text = json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False) + "\n"

    fd, tmp = tempfile.mkstemp(dir=directory, prefix=".", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as w:
            w.write(text)
            w.flush()
            os.fsync(w.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise


def read_json(path: str) -> Any:
    """Read a JSON document. Raises OSError / ValueError on failure."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
