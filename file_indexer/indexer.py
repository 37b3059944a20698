"""
Walks a file or directory tree and brings the index up to date with it.

Files are only re-hashed when their modification time differs from the one in
the index (or when forced). For every directory visited, indexed files that
are no longer in it are removed from the index.
"""

import os
import stat
from pathlib import Path
from typing import Optional

from file_indexer import utils
from file_indexer.errors import FilesystemError, HashError, IndexerError
from file_indexer.hasher import HashConfig
from file_indexer.history_log import IndexHistoryLog
from file_indexer.index_db import IndexDb, escape_like
from file_indexer.indexed_file import IndexedFile
from file_indexer.logger import Logger

MAX_FILE_SIZE = 4 * 1024 * 1024 * 1024 # 4GiB

class IndexReport:
    """
    Counts what an indexing run did.

    Attributes:
        added:
          Files indexed for the first time.
        updated:
          Files re-indexed because they changed, or because it was forced.
        skipped:
          Files left alone because they didn't change.
        deleted:
          Files removed from the index because they no longer exist.
        errors:
          A list of `(path, message)` tuples, one per entry that couldn't be
          indexed.
    """
    def __init__(self) -> None:
        self.added = 0
        self.updated = 0
        self.skipped = 0
        self.deleted = 0
        self.errors: list[tuple[str, str]] = []

    def as_dict(self) -> dict:
        """Returns the report as a JSON serializable dict."""
        return {
            "added": self.added,
            "updated": self.updated,
            "skipped": self.skipped,
            "deleted": self.deleted,
            "errors": [{"path": path, "error": message} for path, message in self.errors]
        }

def reconcile(seen: dict[str, bool]) -> list[str]:
    """
    Returns the previously indexed paths of a directory that weren't seen.

    Args:
        seen:
          Maps every path indexed inside a directory before it was listed to
          whether it was found while listing it.
    """
    return [path for path, was_seen in seen.items() if not was_seen]

class Indexer:
    """
    Indexes files and directories into an `IndexDb`.

    Directories are walked depth first using an explicit stack, so deep trees
    don't hit the recursion limit. `FilesystemError` and `HashError` raised
    while handling a single entry are logged and recorded in the
    `IndexReport`, and the walk carries on. `CatalogError` is never caught.
    """
    def __init__(self,
                 db: IndexDb,
                 hash_config: HashConfig,
                 log: Optional[Logger]=None,
                 history: Optional[IndexHistoryLog]=None,
                 max_file_size: int=MAX_FILE_SIZE
                ) -> None:
        """
        Args:
            db:
              The `IndexDb` to update.
            hash_config:
              The algorithm and method used to hash files.
            log:
              A `Logger` to report progress and errors to.
            history:
              An `IndexHistoryLog` to record the action taken on every entry.
            max_file_size:
              Files this size or larger are indexed without a digest.
        """
        if not isinstance(db, IndexDb):
            raise TypeError("db must be an IndexDb object.")
        if not isinstance(hash_config, HashConfig):
            raise TypeError("hash_config must be a HashConfig object.")

        self._db = db
        self._hash_config = hash_config
        self._computer = hash_config.create_computer()
        self._log = log
        self._history = history
        self._max_file_size = max_file_size

    @property
    def computer(self):
        """The `HashComputer` used to hash files."""
        return self._computer

    def index(self,
              path: str | Path,
              recursive: bool=False,
              force: bool=False,
              keep_deleted: bool=False
             ) -> IndexReport:
        """
        Indexes a file, or the files of a directory.

        Args:
            path:
              The file or directory to index.
            recursive:
              Whether to descend into subdirectories. When false,
              subdirectories are ignored entirely.
            force:
              Re-hash files even if their modification time didn't change.
            keep_deleted:
              Keep files that disappeared from a directory in the index.

        Raises:
            FilesystemError:
              `path` doesn't exist, or isn't a regular file or directory.
            CatalogError:
              The index couldn't be read or written.
        """
        report = IndexReport()
        root = utils.canonicalize(path)
        root_stat = _stat(root)

        if stat.S_ISREG(root_stat.st_mode):
            try:
                self._index_file(root, root_stat, force, report)
            except (FilesystemError, HashError) as err:
                self._record_error(err, report)
        elif stat.S_ISDIR(root_stat.st_mode):
            self._index_tree(root, recursive, force, keep_deleted, report)
        else:
            raise FilesystemError(root, "Not a regular file or directory")

        self._info(f"Indexing of '{root}' done: {report.added} added, {report.updated} updated, "
                   f"{report.skipped} skipped, {report.deleted} deleted, {len(report.errors)} errors.")
        return report

    def _index_tree(self,
                    root: Path,
                    recursive: bool,
                    force: bool,
                    keep_deleted: bool,
                    report: IndexReport
                   ) -> None:
        pending = [root]
        # Symlinked directories could lead back to a directory already walked.
        visited = set()
        while pending:
            directory = pending.pop()
            if directory in visited:
                continue
            visited.add(directory)

            subdirectories = self._index_directory(directory, recursive, force, keep_deleted, report)
            # Reversed so subdirectories are walked in listing order.
            pending.extend(reversed(subdirectories))

    def _index_directory(self,
                         directory: Path,
                         recursive: bool,
                         force: bool,
                         keep_deleted: bool,
                         report: IndexReport
                        ) -> list[Path]:
        """
        Indexes the files directly inside `directory` and removes the ones that
        disappeared from the index.

        Returns:
            The canonical paths of the subdirectories still to be walked.
        """
        seen = {file.path: False for file in self._db.list_children(directory)}

        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as err:
            # Nothing is known about the children, so none of them are deleted.
            self._record_error(FilesystemError(directory, f"Couldn't list directory ({err.strerror})"), report)
            return []

        subdirectories = []
        for entry in entries:
            entry_path = utils.child_path(directory, entry.name)
            try:
                is_dir = entry.is_dir()
            except OSError:
                is_dir = False

            if is_dir and not recursive:
                continue
            if entry_path in seen:
                seen[entry_path] = True

            try:
                canonical = utils.canonicalize(entry_path)
                if is_dir:
                    subdirectories.append(canonical)
                    continue

                entry_stat = _stat(canonical)
                if not stat.S_ISREG(entry_stat.st_mode):
                    raise FilesystemError(canonical, "Not a regular file")
                self._index_file(canonical, entry_stat, force, report)
            except (FilesystemError, HashError) as err:
                self._record_error(err, report)

        if keep_deleted:
            return subdirectories

        for path in reconcile(seen):
            self._db.delete(escape_like(path))
            report.deleted += 1
            self._info(f"Removing '{path}' from the index.")
            self._add_history("delete", "nonexistent", path)

        return subdirectories

    def _index_file(self,
                    path: Path,
                    file_stat: os.stat_result,
                    force: bool,
                    report: IndexReport
                   ) -> None:
        """Hashes and stores `path` if it isn't indexed yet, changed, or `force` is set."""
        path_str = str(path)
        modified = utils.to_unix_seconds(file_stat.st_mtime)
        existing = self._db.get_file(path_str)

        if existing is not None and existing.modified == modified and not force:
            report.skipped += 1
            self._debug(f"Skipping unchanged '{path_str}'.")
            self._add_history("skip", "unchanged", path_str)
            return

        self._info(f"Indexing '{path_str}' ...")
        digest = ""
        if file_stat.st_size < self._max_file_size:
            digest = self._hash(path)
        else:
            self._warn(f"'{path_str}' is {file_stat.st_size} bytes, too large to hash. Storing it without a digest.")

        self._db.upsert(IndexedFile(path_str, digest, file_stat.st_size, modified))

        if existing is None:
            report.added += 1
            self._add_history("new", "new_file", path_str, digest)
        else:
            report.updated += 1
            reason = "changed" if existing.modified != modified else "forced"
            self._add_history("update", reason, path_str, digest)

    def _hash(self, path: Path) -> str:
        try:
            with path.open(mode="rb") as f:
                return self._computer.compute(f, path)
        except OSError as err:
            raise FilesystemError(path, f"Couldn't read file ({err.strerror})") from err

    def _record_error(self, err: IndexerError, report: IndexReport) -> None:
        path = getattr(err, "path", "")
        report.errors.append((path, str(err)))
        self._error(str(err))
        reason = "hash" if isinstance(err, HashError) else "filesystem"
        self._add_history("error", reason, path)

    def _add_history(self, action: str, reason: str, path: str, new_sum: Optional[str]=None) -> None:
        if self._history is not None:
            self._history.add(action, reason, path, new_sum)

    def _debug(self, text: str) -> None:
        if self._log is not None:
            self._log.debug(text)

    def _info(self, text: str) -> None:
        if self._log is not None:
            self._log.log(text)

    def _warn(self, text: str) -> None:
        if self._log is not None:
            self._log.warn(text)

    def _error(self, text: str) -> None:
        if self._log is not None:
            self._log.error(text)

def _stat(path: Path) -> os.stat_result:
    try:
        return path.stat()
    except OSError as err:
        raise FilesystemError(path, f"Couldn't read metadata ({err.strerror})") from err
