"""
Computes file digests.

A `HashConfig` pairs an algorithm with a method, and builds the
`HashComputer` that does the actual work. Two methods exist: `native`, which
hashes in-process with `hashlib`, and `external`, which delegates to the
coreutils `*sum` executable for the algorithm.

Attributes:
    ALGORITHMS:
      The supported hash algorithms.
    EXTERNAL_COMMANDS:
      Maps each algorithm to the executable used by the `external` method.
"""

import hashlib
import shutil
import subprocess
from pathlib import Path
from typing import BinaryIO

from file_indexer.errors import HashError

CHUNK_SIZE = 4 * 1024 * 1024 # 4MiB

ALGORITHMS = ("md5", "sha1", "sha256")

EXTERNAL_COMMANDS = {
    "md5": "md5sum",
    "sha1": "sha1sum",
    "sha256": "sha256sum"
}

class HashComputer:
    """
    Base class of every hashing strategy.

    Subclasses implement `compute`, and are registered in `HASH_METHODS` under
    the method name users select them with.
    """
    def __init__(self, algorithm: str) -> None:
        if algorithm not in ALGORITHMS:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")
        self._algorithm = algorithm

    @property
    def algorithm(self) -> str:
        """The name of the hash algorithm."""
        return self._algorithm

    def compute(self, file: BinaryIO, path: Path) -> str:
        """
        Returns the lowercase hex digest of a file.

        Args:
            file:
              The file, opened in binary mode and positioned at its start.
            path:
              The canonical path of the same file.

        Raises:
            HashError:
              The digest couldn't be computed.
        """
        raise NotImplementedError

class NativeHashComputer(HashComputer):
    """Hashes files in-process, reading them in `CHUNK_SIZE` chunks."""
    def compute(self, file: BinaryIO, path: Path) -> str:
        digest = hashlib.new(self._algorithm)
        try:
            while True:
                data = file.read(CHUNK_SIZE)
                if not data:
                    break
                digest.update(data)
        except OSError as err:
            raise HashError(path, f"Reading failed ({err.strerror})") from err
        return digest.hexdigest()

class ExternalHashComputer(HashComputer):
    """
    Hashes files by running the coreutils tool for the algorithm.

    The tool is run once per file, with the path as its only argument. The
    first whitespace separated token of its output is the digest.
    """
    def __init__(self, algorithm: str) -> None:
        super().__init__(algorithm)
        self._command = EXTERNAL_COMMANDS[algorithm]

    @property
    def command(self) -> str:
        """The name of the executable used to hash files."""
        return self._command

    def compute(self, file: BinaryIO, path: Path) -> str:
        executable = shutil.which(self._command)
        if executable is None:
            raise HashError(path, f"Hash command '{self._command}' wasn't found")

        try:
            result = subprocess.run([executable, str(path)], capture_output=True, check=False)
        except OSError as err:
            raise HashError(path, f"Couldn't run '{self._command}' ({err})") from err

        if result.returncode != 0:
            stderr = result.stderr.decode("utf8", errors="replace").strip()
            raise HashError(path, f"'{self._command}' exited with status {result.returncode} ({stderr})")

        try:
            output = result.stdout.decode("utf8")
        except UnicodeDecodeError as err:
            raise HashError(path, f"'{self._command}' output isn't valid UTF-8") from err

        tokens = output.split()
        if not tokens:
            raise HashError(path, f"'{self._command}' printed no digest")
        # Paths with special characters make coreutils prefix the line with "\"
        return tokens[0].lstrip("\\").lower()

HASH_METHODS = {
    "native": NativeHashComputer,
    "external": ExternalHashComputer
}

class HashConfig:
    """
    The hashing settings of an indexing run.

    Attributes:
        algorithm:
          One of `ALGORITHMS`.
        method:
          One of the keys of `HASH_METHODS`.
    """
    def __init__(self, algorithm: str="sha256", method: str="external") -> None:
        """
        Raises:
            ValueError:
              `algorithm` or `method` isn't supported.
        """
        if algorithm not in ALGORITHMS:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")
        if method not in HASH_METHODS:
            raise ValueError(f"Unsupported hash method: {method}")

        self._algorithm = algorithm
        self._method = method

    def __eq__(self, other) -> bool:
        if not isinstance(other, HashConfig):
            return NotImplemented
        return (self.algorithm, self.method) == (other.algorithm, other.method)

    def __repr__(self) -> str:
        return f"HashConfig(algorithm={self.algorithm!r}, method={self.method!r})"

    def create_computer(self) -> HashComputer:
        """Builds the `HashComputer` for this config."""
        return HASH_METHODS[self._method](self._algorithm)

    @property
    def algorithm(self) -> str:
        """The name of the hash algorithm."""
        return self._algorithm

    @property
    def method(self) -> str:
        """The name of the hash method."""
        return self._method
