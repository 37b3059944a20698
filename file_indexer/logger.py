"""
This module allows for easy logging of an indexing run.
"""

from pathlib import Path
import time
import sys
from traceback import format_exception
from typing import Optional, TextIO

class Logger:
    """
    Logs info from program runtime to disk and/or the console.

    This class lets you log text, and classify log entries as `debug`, `log`,
    `warn`, or `error`, depending on severity. Entries are written to the log
    file if one was given, and to `console` if `mirror_to_console` is set or
    there is no log file. `debug` entries are dropped unless `verbose` is set.
    In addition, if this class is used with Python's `with` syntax, any
    Exceptions raised inside of the `with` block will be logged (but not
    caught).

    Attributes:
        mirror_to_console:
          A `bool` representing whether or not to write all log entries to
          the console. This attribute can be changed even after the class is
          inited.
        verbose:
          Whether `debug` entries are written.
    """
    def __init__(self,
                 log_file: Optional[Path]=None,
                 log_exception: bool=True,
                 mirror_to_console: bool=False,
                 verbose: bool=False,
                 console: Optional[TextIO]=None
                ) -> None:
        """
        Inits a Logger for the given `log_file`.

        Arguments:
            log_file:
              A `Path` object representing where to store the log file, or
              `None` to only log to the console.
            log_exception:
              A `bool` representing whether to log exceptions that occur within
              the `with` block the `Logger` is instantiated from. Does nothing
              if this `Logger` wasn't created using the `with` syntax.
            mirror_to_console:
              If `True`, writes all log entries to the console in addition to
              the log file.
            verbose:
              If `True`, `debug` entries are logged.
            console:
              The stream used as the console. Defaults to `sys.stderr`.

        Raises:
            FileExistsError:
              The `log_file` given already exists.
        """
        if log_file is not None and not isinstance(log_file, Path):
            raise TypeError("Log file must be of type path.")
        if log_file is not None and log_file.exists():
            raise FileExistsError(f"Log file path already exists. Won't clobber. {log_file}")

        self._mirror_to_console = bool(mirror_to_console)
        self._log_exception = bool(log_exception)
        self._verbose = bool(verbose)
        self._console = console if console is not None else sys.stderr
        self._closed = False
        self._fd: Optional[TextIO] = None

        if log_file is not None:
            self._fd = log_file.open(mode="xt", encoding="utf8", errors="backslashreplace")
            self._fd.write(f"[{get_time()}] START OF LOG\n")

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self._closed:
            return

        if exc_type and self._log_exception:
            tb = format_exception(exc_type, exc_value, traceback)
            tb = "".join(tb)
            self.error(tb)
            self.error("Closing due to uncaught exception.")
        self.close()

    def _write(self, text: str, mirror_to_console: bool=False) -> None:
        """Lets us write to log without any severity prefixes."""
        if self._closed:
            raise ValueError("Can't write to log because it is already closed.")

        line = f"[{get_time()}] {text}"
        if self._fd is not None:
            self._fd.write(line)
        if self._fd is None or self._mirror_to_console or mirror_to_console:
            self._console.write(line)

    @property
    def mirror_to_console(self) -> bool:
        """A `bool` representing whether to write log entries to the console."""
        return self._mirror_to_console

    @mirror_to_console.setter
    def mirror_to_console(self, value: bool) -> None:
        if not isinstance(value, bool):
            raise TypeError("mirror_to_console must be a bool.")
        self._mirror_to_console = value

    @property
    def verbose(self) -> bool:
        """Whether `debug` entries are written."""
        return self._verbose

    def debug(self, text: str, **kwargs) -> None:
        """Logs text, but only when the logger is verbose."""
        if self._verbose:
            self._write("DEBUG: " + text + "\n", **kwargs)

    def log(self, text: str, **kwargs) -> None:
        """
        Logs text.

        Arguments:
            mirror_to_console:
              See `Logger.mirror_to_console`.
        """
        self._write(text + "\n", **kwargs)

    def warn(self, text: str, **kwargs) -> None:
        """
        Logs a warning.

        Arguments:
            mirror_to_console:
              See `Logger.mirror_to_console`.
        """
        self._write("WARNING: " + text + "\n", **kwargs)

    def error(self, text: str, **kwargs) -> None:
        """
        Logs an error.

        Arguments:
            mirror_to_console:
              See `Logger.mirror_to_console`.
        """
        self._write("ERROR: " + text + "\n", **kwargs)

    def close(self) -> None:
        """Close the log file."""
        if self._closed:
            return

        if self._fd is not None:
            self._fd.write(f"[{get_time()}] END OF LOG\n")
            self._fd.close()
        self._closed = True

def get_time() -> str:
    """Returns the current time in a nicely formatted string."""
    return time.strftime("%Y-%m-%d %H:%M:%S")
