"""
Records stored in, and derived from, the file index.

`IndexedFile` is one row of the catalog. `Duplicate` is a group of rows that
share a digest; it's computed by the database on demand and never stored.
"""

from pathlib import Path
from typing import Mapping

class IndexedFile:
    """
    The indexed metadata of a single file.

    Attributes:
        path:
          The canonical absolute path of the file, as a string. This is the
          unique key of the catalog.
        sum:
          The lowercase hex digest of the file, or an empty string if the file
          was too large to hash.
        size:
          File size in bytes.
        modified:
          The file's last modification time in unix seconds.
    """
    def __init__(self, path: str, sum: str, size: int, modified: int) -> None:
        if not isinstance(path, str):
            raise TypeError("path wasn't a string.")
        if not isinstance(sum, str):
            raise TypeError("sum wasn't a string.")
        if not isinstance(size, int):
            raise TypeError("size wasn't of type int.")
        if not isinstance(modified, int):
            raise TypeError("modified wasn't of type int.")

        self._path = path
        self._sum = sum
        self._size = size
        self._modified = modified

    @classmethod
    def from_row(cls, row: Mapping) -> "IndexedFile":
        """
        Builds an `IndexedFile` from a database row.

        This is the inverse of `IndexedFile.as_dict`.
        """
        return cls(row["path"], row["sum"], row["size"], row["modified"])

    def as_dict(self) -> dict:
        """
        Returns the record as a dict.

        The dict is used both as SQL parameters and as the JSON representation
        of the file.
        """
        return {
            "path": self.path,
            "sum": self.sum,
            "size": self.size,
            "modified": self.modified
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, IndexedFile):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __repr__(self) -> str:
        return (f"IndexedFile(path={self.path!r}, sum={self.sum!r}, "
                f"size={self.size!r}, modified={self.modified!r})")

    @property
    def path(self) -> str:
        """The canonical path of the file."""
        return self._path

    @property
    def parent(self) -> str:
        """The directory containing the file."""
        return str(Path(self._path).parent)

    @property
    def sum(self) -> str:
        """The hex digest of the file."""
        return self._sum

    @property
    def size(self) -> int:
        """The size of the file in bytes."""
        return self._size

    @property
    def modified(self) -> int:
        """The time of last modification of the file in unix seconds."""
        return self._modified

class Duplicate:
    """
    A set of indexed files sharing the same digest.

    Attributes:
        sum:
          The digest every file in `list` has.
        num:
          The number of files sharing the digest.
        list:
          The `IndexedFile` records sharing the digest.
    """
    def __init__(self, sum: str, num: int, files: list[IndexedFile]) -> None:
        self._sum = sum
        self._num = num
        self._list = list(files)

    def as_dict(self) -> dict:
        """Returns the group as a JSON serializable dict."""
        return {
            "sum": self.sum,
            "num": self.num,
            "list": [file.as_dict() for file in self.list]
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, Duplicate):
            return NotImplemented
        return (self.sum == other.sum
                and self.num == other.num
                and sorted(f.path for f in self.list) == sorted(f.path for f in other.list))

    def __repr__(self) -> str:
        return f"Duplicate(sum={self.sum!r}, num={self.num!r}, list={self.list!r})"

    @property
    def sum(self) -> str:
        """The shared digest."""
        return self._sum

    @property
    def num(self) -> int:
        """The number of files in the group."""
        return self._num

    @property
    def list(self) -> list[IndexedFile]:
        """The files in the group."""
        return self._list
