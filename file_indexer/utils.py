"""Common utils"""

import math
import os
import sys
from pathlib import Path
from typing import Optional, TextIO

from file_indexer.errors import FilesystemError

def canonicalize(path: str | Path) -> Path:
    """
    Returns the absolute, symlink resolved form of `path`.

    Raises:
        FilesystemError:
          `path` doesn't exist, one of its components can't be accessed, or
          it isn't valid UTF-8 and so can't be stored in the catalog.
    """
    try:
        resolved = Path(path).resolve(strict=True)
    except (OSError, RuntimeError) as err:
        # RuntimeError is raised for symlink loops on older interpreters.
        raise FilesystemError(path, "Couldn't canonicalize path") from err

    try:
        str(resolved).encode("utf8")
    except UnicodeEncodeError as err:
        raise FilesystemError(resolved, "Path isn't valid UTF-8") from err
    return resolved

def to_unix_seconds(timestamp: float) -> int:
    """Truncates a `st_mtime` style timestamp to whole seconds."""
    return math.floor(timestamp)

def is_sqlite_db(path: Path) -> bool:
    """Checks if given file contains a SQLite database."""
    if not path.is_file():
        raise FileNotFoundError(f"Path given doesn't exist: {path}")

    # An empty file is turned into a database by SQLite on first write.
    size = path.stat().st_size
    if size == 0:
        return True
    # SQLite database header is 100 bytes long.
    if size < 100:
        return False

    with path.open(mode="rb") as f:
        header = f.read(16)

    return header == b"SQLite format 3\0"

def child_path(directory: Path, name: str) -> str:
    """Joins a directory and an entry name the way the catalog stores paths."""
    return os.path.join(str(directory), name)

def dump_database(db, out: Optional[TextIO]=None) -> None:
    """Dumps the contents of an `IndexDb` into `out` as a table."""
    if out is None:
        out = sys.stdout
    out.write("Path".ljust(80) + " | " + "Sum".ljust(64) + " | " + "Size".ljust(12) + " | " + "Modified".ljust(12) + "\n")
    for file in db.list():
        f_path = file.path.ljust(80)
        f_sum = file.sum.ljust(64)
        f_size = str(file.size).ljust(12)
        f_modified = str(file.modified).ljust(12)
        out.write(f"{f_path} | {f_sum} | {f_size} | {f_modified}\n")
