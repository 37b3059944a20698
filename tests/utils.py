import os
from pathlib import Path

HELLO_SHA256 = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
HELLO_SHA1 = "aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d"
HELLO_MD5 = "5d41402abc4b2a76b9719d911017c592"

def write_file(path: Path, content: bytes | str, mtime: int | None=None) -> Path:
    """Writes `content` to `path`, creating parent folders, and optionally sets its mtime."""
    if isinstance(content, str):
        content = content.encode("utf8")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    if mtime is not None:
        set_mtime(path, mtime)
    return path

def set_mtime(path: Path, mtime: int) -> None:
    """Sets both the atime and mtime of `path` to `mtime` seconds."""
    os.utime(path, (mtime, mtime))

def make_tree(root: Path, files: dict[str, bytes | str], mtime: int=1_600_000_000) -> dict[str, Path]:
    """
    Creates every file of `files` (relative path -> content) below `root`.

    Returns a dict mapping each relative path to the canonical path created.
    """
    created = {}
    for relative_path, content in files.items():
        created[relative_path] = write_file(root / relative_path, content, mtime).resolve()
    return created
