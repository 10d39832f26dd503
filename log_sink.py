"""Append-only request log written to the console and a file."""

from __future__ import annotations

import itertools
import logging
import sys
from pathlib import Path

LINE_FORMAT = "%(asctime)s: %(message)s"

_sink_ids = itertools.count(1)


class LogSink:
    """Timestamped line log backed by a dedicated ``logging`` logger.

    Every ``write`` becomes exactly one log record. ``logging.Handler`` takes
    its own lock around ``emit`` and ``FileHandler`` flushes after each record,
    so lines from concurrent requests land in the file whole.
    """

    def __init__(self, path: str | Path, *, echo: bool = True) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        self._logger = logging.getLogger(f"arcadia.requests.{next(_sink_ids)}")
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False

        formatter = logging.Formatter(LINE_FORMAT)
        self._file_handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        self._file_handler.setFormatter(formatter)
        self._logger.addHandler(self._file_handler)

        self._console_handler: logging.Handler | None = None
        if echo:
            self._console_handler = logging.StreamHandler(sys.stdout)
            self._console_handler.setFormatter(formatter)
            self._logger.addHandler(self._console_handler)

    def write(self, line: str) -> None:
        self._logger.info(line)

    def read(self) -> str:
        self._file_handler.acquire()
        try:
            self._file_handler.flush()
            return self.path.read_text(encoding="utf-8")
        finally:
            self._file_handler.release()

    def clear(self) -> None:
        """Truncate the log file in place; the file itself is kept."""
        self._file_handler.acquire()
        try:
            self._file_handler.flush()
            stream = self._file_handler.stream
            if stream is None:
                self.path.write_text("", encoding="utf-8")
            else:
                stream.truncate(0)
        finally:
            self._file_handler.release()

    def close(self) -> None:
        for handler in (self._file_handler, self._console_handler):
            if handler is None:
                continue
            self._logger.removeHandler(handler)
            handler.close()
