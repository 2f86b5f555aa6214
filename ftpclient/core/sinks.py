"""
Destinations for lines read from a data connection.

Both sinks are context managers; `write_line` receives one line without its
terminator.
"""

import logging
import os
from typing import Callable, List

from ftpclient.config import DEFAULT_ENCODING

logger = logging.getLogger(__name__)


class ConsoleSink:
    """Echoes every line to the user."""

    def __init__(self, echo: Callable[[str], None] = print):
        self.echo = echo
        self.count = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def write_line(self, line: str):
        self.echo(line)
        self.count += 1


class CollectingSink(ConsoleSink):
    """Keeps the lines in memory, for callers that render them later."""

    def __init__(self):
        self.lines: List[str] = []
        super().__init__(self.lines.append)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class FileSink:
    """Writes lines to a local file, truncating it when the transfer starts."""

    def __init__(self, path: str, encoding: str = DEFAULT_ENCODING):
        self.path = path
        self.encoding = encoding
        self.count = 0
        self._file = None

    def __enter__(self):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._file = open(self.path, "w", encoding=self.encoding, newline="\n")
        logger.debug(f"[DATA] Writing to {os.path.abspath(self.path)}")
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._file is not None:
            self._file.close()
            self._file = None
        if exc_type is None:
            logger.info(f"[DATA] {self.count} line(s) written to {self.path}")
        return False

    def write_line(self, line: str):
        if self._file is None:
            raise RuntimeError(f"FileSink for {self.path} is not open")
        self._file.write(line + "\n")
        self.count += 1
