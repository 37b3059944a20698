"""
Reads, validates and writes file indexer config files.

Config files are standard JSON. They store the path of the index database,
an optional folder to hold run logs, and the default hashing settings.
Every key is optional; missing keys fall back to `DEFAULTS`.
"""

import json
import os
import time
from pathlib import Path

from file_indexer.hasher import ALGORITHMS, HASH_METHODS

PROG_NAME = "file-indexer"

DEFAULTS = {
    "database": None,
    "log_folder": None,
    "algorithm": "sha256",
    "method": "external"
}

def default_database_path() -> Path:
    """
    Returns the default location of the index database.

    The database is stored in the XDG data directory, which is created if it
    doesn't exist yet.
    """
    data_home = os.environ.get("XDG_DATA_HOME")
    if not data_home:
        data_home = Path.home() / ".local" / "share"
    data_dir = Path(data_home) / PROG_NAME
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / "db.sqlite"

def create_config_template() -> dict:
    """Returns a config template."""
    return dict(DEFAULTS)

def read_config(config_file: Path) -> dict:
    """
    Reads and validates the given `config_file` path. Returns a dict
    representing the config, with every missing key set to its default.

    Raises:
        FileNotFoundError:
          `config_file` doesn't exist.
        ValueError:
          The parsed JSON file isn't a valid config file.
        NotADirectoryError:
          The log folder specified doesn't exist.
    """
    if not config_file.is_file():
        raise FileNotFoundError(f"Config file specified doesn't exist: {config_file}")

    with config_file.open(mode="rt", encoding="utf8") as f:
        try:
            raw_config = json.load(f)
        except json.JSONDecodeError as err:
            raise ValueError(f"Config file isn't valid JSON: {err}") from err

    if not isinstance(raw_config, dict):
        raise ValueError("This doesn't appear to be a valid config file.")

    unknown_keys = set(raw_config) - set(DEFAULTS)
    if unknown_keys:
        raise ValueError(f"Unknown keys in config file: {', '.join(sorted(unknown_keys))}")

    config = create_config_template()
    config.update(raw_config)
    validate_config(config)
    return config

def validate_config(config: dict) -> None:
    """Raises an exception if any value of `config` is invalid."""
    db_path = config["database"]
    if db_path is not None and (not db_path or not isinstance(db_path, str)):
        raise ValueError("Database path in config file must be a non-empty string.")

    log_folder = config["log_folder"]
    if log_folder is not None:
        if not log_folder or not isinstance(log_folder, str):
            raise ValueError("Log folder in config file must be a non-empty string.")
        if not Path(log_folder).is_dir():
            raise NotADirectoryError(f"Log folder specified in config doesn't exist: {log_folder}")

    if config["algorithm"] not in ALGORITHMS:
        raise ValueError(f"Invalid hash algorithm in config file: {config['algorithm']}")
    if config["method"] not in HASH_METHODS:
        raise ValueError(f"Invalid hash method in config file: {config['method']}")

def write_config(config: dict, config_file: Path) -> None:
    """Validates the given config, and writes it to disk as JSON."""
    validate_config(config)
    with config_file.open(mode="wt", encoding="utf8") as f:
        json.dump(config, f, indent=4)

def create_log_file_paths(log_folder: Path) -> dict[str, Path]:
    """
    Creates `Path` objects representing where to save log files to. This
    function creates unique file names based upon system time, and ensures that
    there isn't a collision between the newly generated names and past log
    files.

    Arguments:
        log_folder:
          A `Path` object representing the folder in which the log files should
          be saved.

    Returns:
        A dict with keys `log` and `csv`. Each key's value represents a unique
        path where the plain text logs and the CSV index history can be saved.
    """
    if not log_folder.is_dir():
        raise NotADirectoryError("Log folder isn't a directory.")
    log_file_base = log_folder / time.strftime("%Y-%m-%d %H-%M-%S")

    log_file = log_file_base.with_suffix(".log")
    csv_file = log_file_base.with_suffix(".csv.gz")

    if log_file.exists() or csv_file.exists():
        raise FileExistsError("Log file already exists, won't clobber. (Did you run this twice in one second?)")

    return {
        "log": log_file,
        "csv": csv_file
    }
