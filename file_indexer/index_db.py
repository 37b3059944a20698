"""
Handles creation, modification and queries of the file index database.
"""

import sqlite3
from pathlib import Path
from typing import List, Optional

from file_indexer import utils
from file_indexer.errors import CatalogError
from file_indexer.indexed_file import Duplicate, IndexedFile

LIKE_ESCAPE = "\\"

def escape_like(text: str) -> str:
    """Escapes `text` so it only matches itself in a `LIKE` pattern."""
    return (text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
                .replace("%", LIKE_ESCAPE + "%")
                .replace("_", LIKE_ESCAPE + "_"))

class IndexDb:
    """
    Connects to, or creates, a file index database.

    The database holds one row per indexed file, keyed by its canonical path,
    with its digest, size and modification time. Every write is committed
    immediately, so an interrupted run keeps everything written before it
    stopped.

    Path patterns given to `delete` and `list` use `LIKE` semantics: `%`
    matches any substring, and `\\` escapes a literal `%`, `_` or `\\` (see
    `escape_like`). Matching is case sensitive.

    Attributes:
        readonly:
          A bool representing whether database is in readonly mode.
        db_path:
          The path the database is stored at.
    """

    def __init__(self, db_path: str | Path, readonly: bool=False) -> None:
        """
        Opens an existing database, or creates and initializes a new one.

        Args:
            db_path:
              Path to the database. If it doesn't exist and `readonly` is
              false, a new database is created there.
            readonly:
              Whether to open an existing database in readonly mode.

        Raises:
            TypeError:
              `db_path` isn't a string or `Path`.
            CatalogError:
              The database doesn't exist in readonly mode, isn't a SQLite
              database, or couldn't be initialized.
        """
        if not isinstance(db_path, (str, Path)):
            raise TypeError("db_path must be a string or Path object.")

        self._db_path = Path(db_path).resolve()
        self._readonly = bool(readonly)
        self._conn: Optional[sqlite3.Connection] = None
        self._is_closed = False

        if self._db_path.is_dir():
            raise CatalogError(f"Database path given is a directory: {self._db_path}")
        if self._db_path.exists():
            try:
                is_db = utils.is_sqlite_db(self._db_path)
            except OSError as err:
                raise CatalogError(f"Couldn't read database at {self._db_path}: {err}") from err
            if not is_db:
                raise CatalogError(f"Database path given isn't a SQLite database: {self._db_path}")

        if self._readonly:
            self._connect_readonly()
        else:
            self._connect_and_bootstrap()

        self._conn.row_factory = sqlite3.Row

    def __enter__(self) -> "IndexDb":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def upsert(self, file: IndexedFile) -> None:
        """
        Inserts `file`, replacing any row with the same path.

        Raises:
            CatalogError:
              Database is read-only, or the write failed.
        """
        if not isinstance(file, IndexedFile):
            raise TypeError("File given isn't an IndexedFile object.")
        self._assert_writable("upsert a file")

        self._write("REPLACE INTO files (path, sum, size, modified) VALUES (:path, :sum, :size, :modified)",
                    file.as_dict())

    def delete(self, path_pattern: str) -> int:
        """
        Removes every file whose path matches `path_pattern`.

        Use `escape_like(path)` to delete a single path, or
        `escape_like(directory) + "/%"` to delete everything below a directory.

        Returns:
            The number of rows deleted.
        """
        if not isinstance(path_pattern, str):
            raise TypeError("path_pattern must be a string.")
        self._assert_writable("delete files")

        return self._write("DELETE FROM files WHERE path LIKE ? ESCAPE ?", (path_pattern, LIKE_ESCAPE))

    def list(self, path_pattern: Optional[str]=None) -> List[IndexedFile]:
        """Returns every file matching `path_pattern`, or every file if it's `None`."""
        if path_pattern is None:
            path_pattern = "%"
        if not isinstance(path_pattern, str):
            raise TypeError("path_pattern must be a string.")

        rows = self._query("SELECT path, sum, size, modified FROM files WHERE path LIKE ? ESCAPE ?",
                           (path_pattern, LIKE_ESCAPE))
        return [IndexedFile.from_row(row) for row in rows]

    def get_file(self, path: str | Path) -> IndexedFile | None:
        """Finds the file stored under exactly `path`."""
        rows = self._query("SELECT path, sum, size, modified FROM files WHERE path = ?", (str(path),))
        if not rows:
            return None
        return IndexedFile.from_row(rows[0])

    def list_children(self, directory: str | Path) -> List[IndexedFile]:
        """Returns the files stored directly inside `directory`."""
        directory = str(directory)
        prefix = directory.rstrip("/") + "/"
        return [file for file in self.list(escape_like(prefix) + "%")
                if file.parent == directory]

    def search(self, name: str) -> List[IndexedFile]:
        """Returns the files whose path contains `name`."""
        return self.list("%" + escape_like(name) + "%")

    def list_duplicates(self) -> List[Duplicate]:
        """
        Groups files by digest, returning every group with more than one file.

        Files stored without a digest are never grouped, since nothing is known
        about their content.
        """
        groups = self._query("SELECT sum, COUNT(*) AS num FROM files WHERE sum != '' GROUP BY sum HAVING num > 1")

        duplicates = []
        for group in groups:
            rows = self._query("SELECT path, sum, size, modified FROM files WHERE sum = ?", (group["sum"],))
            files = [IndexedFile.from_row(row) for row in rows]
            duplicates.append(Duplicate(group["sum"], group["num"], files))
        return duplicates

    def close(self) -> None:
        """Closes the database."""
        if self._is_closed:
            return

        if self._conn is not None:
            self._conn.close()
        self._is_closed = True

    def _assert_writable(self, action: str) -> None:
        if self._is_closed:
            raise CatalogError(f"Can't {action}: database is closed.")
        if self._readonly:
            raise CatalogError(f"Can't {action} while in read-only mode.")

    def _write(self, sql: str, params=()) -> int:
        try:
            with self._conn:
                cur = self._conn.execute(sql, params)
                return cur.rowcount
        except sqlite3.Error as err:
            raise CatalogError(f"Database write failed: {err}") from err

    def _query(self, sql: str, params=()) -> List[sqlite3.Row]:
        if self._is_closed:
            raise CatalogError("Can't query the database: it is closed.")
        try:
            cur = self._conn.execute(sql, params)
            rows = cur.fetchall()
            cur.close()
            return rows
        except sqlite3.Error as err:
            raise CatalogError(f"Database query failed: {err}") from err

    def _connect_and_bootstrap(self) -> None:
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._db_path)
            conn.execute("PRAGMA case_sensitive_like = ON")
            with conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS files (
                        path text primary key,
                        sum text not null,
                        size integer,
                        modified integer
                    );
                """)
        except (sqlite3.Error, OSError) as err:
            raise CatalogError(f"Couldn't initialize database at {self._db_path}: {err}") from err
        self._conn = conn

    def _connect_readonly(self) -> None:
        if not self._db_path.is_file():
            raise CatalogError(f"Database path given doesn't exist: {self._db_path}")
        try:
            conn = sqlite3.connect(self._db_path.as_uri() + "?mode=ro", uri=True)
            conn.execute("PRAGMA case_sensitive_like = ON")
        except sqlite3.Error as err:
            raise CatalogError(f"Couldn't open database at {self._db_path}: {err}") from err
        self._conn = conn

    @property
    def db_path(self) -> str:
        """The path the database is stored at."""
        return str(self._db_path)

    @property
    def readonly(self) -> bool:
        """Whether the database is in readonly mode."""
        return self._readonly
