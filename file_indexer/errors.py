"""
Exceptions raised while indexing.

`FilesystemError` and `HashError` concern a single entry and are isolated by
the `Indexer`, which records them and moves on. `CatalogError` means the
database itself can't be trusted anymore, and always aborts the run.
"""


class IndexerError(Exception):
    """Base class for every error raised by this package."""


class FilesystemError(IndexerError):
    """A path is missing, unreadable, or couldn't be canonicalized."""
    def __init__(self, path, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = str(path)


class CatalogError(IndexerError):
    """The catalog couldn't be created, queried or written."""


class HashError(IndexerError):
    """A digest couldn't be computed for a file."""
    def __init__(self, path, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = str(path)
