"""
Logs what an indexing run did to each entry, and why.

Attributes:
    LOG_ACTIONS:
      A dict, where each key is a valid action that can be done to an entry.
      Each key's value is a list representing valid reasons for that action to
      be done. For example, the action "update" can have the reason "changed".
"""

from pathlib import Path
import csv
import gzip

_CSV_HEADER = ["action", "reason", "path", "new_sum"]

# This dict maps log actions to reason lists
LOG_ACTIONS = {
    "new": [
        "new_file" # File wasn't in the index yet
    ],

    "update": [
        "changed", # Modification time differs from the indexed one
        "forced" # Re-indexing was requested even though nothing changed
    ],

    "delete": [
        "nonexistent" # Indexed file is no longer in its directory
    ],

    "skip": [
        "unchanged" # Modification time matches the indexed one
    ],

    "error": [
        "filesystem", # Entry couldn't be read or listed
        "hash" # Digest couldn't be computed
    ]
}

class IndexHistoryLog:
    """
    Logs index changes to a given file.

    Output file contains a CSV representing the action taken on each entry
    visited during an indexing run, with the reason behind it.
    """
    def __init__(self,
                 log_path: Path,
                 gzip_compress: bool=True
                ) -> None:
        """
        Creates an index history logger.

        Args:
            log_path:
              `Path` of where to save log.
            gzip_compress:
              Whether to compress log file with gzip.

        Raises:
            TypeError:
              `log_path` isn't a `Path` object.
            FileExistsError:
              A file already exists at `log_path`.
        """
        if not isinstance(log_path, Path):
            raise TypeError("log_path must be a Path object.")

        self._log_path = log_path
        self._closed = False

        if self._log_path.exists():
            raise FileExistsError(f"Can't create a new log at '{self._log_path}': File already exists.")

        if gzip_compress:
            self._fd = gzip.open(self._log_path, mode="xt", encoding="utf8", errors="backslashreplace", newline="")
        else:
            self._fd = self._log_path.open(mode="xt", encoding="utf8", errors="backslashreplace", newline="")

        self._csv_writer = csv.DictWriter(self._fd, fieldnames=_CSV_HEADER)
        self._csv_writer.writeheader()

    def __enter__(self) -> "IndexHistoryLog":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def add(self, action: str, reason: str, path: str, new_sum: str | None=None) -> None:
        """
        Add an action to the log file.

        Args:
            action:
              The action that should be logged. Valid actions are stored in the
              module's LOG_ACTIONS attribute.
            reason:
              The reason the action was performed. Valid reasons are stored as
              in a list on the module's corresponding LOG_ACTIONS attribute.
            path:
              The path of the entry this log entry applies to.
            new_sum:
              The digest written to the index, for "new" and "update" actions.

        Raises:
            ValueError:
              Function was supplied a bad action/reason pair.
        """
        if self._closed:
            raise ValueError("Can't write new log entry: log has been closed.")

        if not action in LOG_ACTIONS:
            raise ValueError(f"Invalid log action: {action}")
        if not reason in LOG_ACTIONS[action]:
            raise ValueError(f"Invalid log reason '{reason}' for action '{action}'")

        csv_dict = {
            "action": action,
            "reason": reason,
            "path": str(path)
        }

        if action == "new" or action == "update":
            csv_dict["new_sum"] = new_sum or ""

        self._csv_writer.writerow(csv_dict)

    def close(self) -> None:
        """Closes log file."""
        if self._closed:
            return

        self._fd.close()
        self._closed = True
