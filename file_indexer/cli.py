"""
Command line interface of the file indexer.

Subcommands:
  run               Index a file or directory.
  list              Print every indexed file, or with `list duplicates`, every
                    group of files sharing a digest.
  search NAME       Print every indexed file whose path contains NAME.
  config FILE       Create or update a config file.

Results are printed to stdout as JSON. Progress and errors are logged to
stderr, and to a log file if the config names a log folder.
"""

import json
import sys
from argparse import ArgumentParser
from contextlib import ExitStack
from pathlib import Path
from typing import Optional

from file_indexer import __version__, config, utils
from file_indexer.errors import IndexerError
from file_indexer.hasher import ALGORITHMS, HASH_METHODS, HashConfig
from file_indexer.history_log import IndexHistoryLog
from file_indexer.index_db import IndexDb
from file_indexer.indexer import Indexer
from file_indexer.logger import Logger

def build_arg_parser() -> ArgumentParser:
    """Returns the parser for every subcommand."""
    arg_parser = ArgumentParser(
                                    prog=config.PROG_NAME,
                                    description="Index files in a SQLite database."
                               )
    arg_parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    arg_parser.add_argument("-d", "--database", type=Path, help="Path to the index database. Defaults to the XDG data directory.")
    arg_parser.add_argument("-c", "--config", type=Path, help="Path to a JSON config file.")
    arg_parser.add_argument("-v", "--verbose", action="count", default=0, help="Sets the level of verbosity.")

    subparsers = arg_parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run indexation.")
    run_parser.add_argument("-p", "--path", type=Path, help="Path to index. Defaults to the current directory.")
    run_parser.add_argument("-a", "--algorithm", choices=ALGORITHMS, help="Hash algorithm to use. (default: sha256)")
    run_parser.add_argument("-m", "--method", choices=sorted(HASH_METHODS), help="Hash method to use. (default: external)")
    run_parser.add_argument("-r", "--recursive", action="store_true", help="Index subfolders.")
    run_parser.add_argument("-f", "--force", action="store_true", help="Index even if the modification date hasn't changed.")
    run_parser.add_argument("-D", "--keep-deleted", action="store_true", help="Keep deleted files in the index.")

    list_parser = subparsers.add_parser("list", help="List indexed files.")
    list_parser.add_argument("--table", action="store_true", help="Print a table instead of JSON.")
    list_subparsers = list_parser.add_subparsers(dest="list_command")
    list_subparsers.add_parser("duplicates", help="List duplicate files.")

    search_parser = subparsers.add_parser("search", help="Search indexed files by name.")
    search_parser.add_argument("name", help="Text the path of a file must contain.")

    config_parser = subparsers.add_parser("config", help="Create or update a config file.")
    config_parser.add_argument("config_file", type=Path, help="Path to config file.")
    config_parser.add_argument("--new", action="store_true", help="Create a new config file.")
    config_parser.add_argument("--set-database", type=Path, help="Index database to use.")
    config_parser.add_argument("--set-log-folder", type=Path, help="A folder to hold run logs.")
    config_parser.add_argument("--set-algorithm", choices=ALGORITHMS, help="Default hash algorithm.")
    config_parser.add_argument("--set-method", choices=sorted(HASH_METHODS), help="Default hash method.")

    return arg_parser

def main(argv: Optional[list[str]]=None) -> int:
    """Runs the command line interface, returning the exit status."""
    args = build_arg_parser().parse_args(argv)

    try:
        if args.command == "config":
            update_config_file(args)
            return 0

        current_config = config.read_config(args.config) if args.config else config.create_config_template()
        db_path = resolve_database_path(args.database, current_config)

        if args.command == "run":
            run_index(args, current_config, db_path)
        elif args.command == "list":
            list_files(args, db_path)
        elif args.command == "search":
            search_files(args, db_path)
    except (IndexerError, OSError, ValueError) as err:
        print(f"{config.PROG_NAME}: error: {err}", file=sys.stderr)
        return 1

    return 0

def resolve_database_path(database: Optional[Path], current_config: dict) -> Path:
    """Picks the database given on the command line, then the config's, then the default."""
    if database is not None:
        return database
    if current_config["database"]:
        return Path(current_config["database"])
    return config.default_database_path()

def run_index(args, current_config: dict, db_path: Path) -> None:
    """Indexes `args.path` and prints the resulting report."""
    path = args.path if args.path is not None else Path.cwd()
    hash_config = HashConfig(
        args.algorithm or current_config["algorithm"],
        args.method or current_config["method"]
    )
    verbose = args.verbose > 0

    log_file = None
    history_file = None
    if current_config["log_folder"]:
        log_paths = config.create_log_file_paths(Path(current_config["log_folder"]))
        log_file = log_paths["log"]
        history_file = log_paths["csv"]

    with ExitStack() as stack:
        log = stack.enter_context(Logger(log_file, log_exception=log_file is not None,
                                           mirror_to_console=verbose, verbose=verbose))
        history = None
        if history_file is not None:
            history = stack.enter_context(IndexHistoryLog(history_file))
        db = stack.enter_context(IndexDb(db_path))

        log.debug(f"Using database '{db.db_path}' with {hash_config}.")
        indexer = Indexer(db, hash_config, log=log, history=history)
        report = indexer.index(path, recursive=args.recursive, force=args.force, keep_deleted=args.keep_deleted)

    print(json.dumps({"report": report.as_dict()}))

def open_database(db_path: Path) -> IndexDb:
    """Opens an existing database read-only, or creates an empty one."""
    return IndexDb(db_path, readonly=db_path.is_file())

def list_files(args, db_path: Path) -> None:
    """Prints every indexed file, or every group of duplicates."""
    with open_database(db_path) as db:
        if args.table and args.list_command is None:
            utils.dump_database(db)
            return
        if args.list_command == "duplicates":
            output = {"duplicates": [duplicate.as_dict() for duplicate in db.list_duplicates()]}
        else:
            output = {"list": [file.as_dict() for file in db.list()]}
    print(json.dumps(output))

def search_files(args, db_path: Path) -> None:
    """Prints every indexed file whose path contains `args.name`."""
    with open_database(db_path) as db:
        results = [file.as_dict() for file in db.search(args.name)]
    print(json.dumps({"results": results}))

def update_config_file(args) -> None:
    """Creates or updates the config file at `args.config_file`."""
    config_file = args.config_file
    if args.new and config_file.exists():
        raise FileExistsError("Tried to create new config file, but path given already exists. Won't clobber.")
    if not args.new and not config_file.is_file():
        raise FileNotFoundError(f"No config file exists at given path: {config_file}")

    current_config = config.create_config_template() if args.new else config.read_config(config_file)

    if args.set_database is not None:
        current_config["database"] = str(args.set_database.resolve())
    if args.set_log_folder is not None:
        if not args.set_log_folder.is_dir():
            raise NotADirectoryError("Log folder must be a directory.")
        current_config["log_folder"] = str(args.set_log_folder.resolve(strict=True))
    if args.set_algorithm is not None:
        current_config["algorithm"] = args.set_algorithm
    if args.set_method is not None:
        current_config["method"] = args.set_method

    config.write_config(current_config, config_file)
