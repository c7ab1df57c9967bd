"""Output sinks - Imperative Shell.

LineSink writes event lines to a text stream (stdout by default).
RawLogSink appends raw feed responses to a file.

Both raise SinkError when the underlying channel is gone; the caller
treats that as fatal.
"""

import logging
import sys
from pathlib import Path
from typing import TextIO

from quakewatch.core.errors import SinkError


logger = logging.getLogger(__name__)


class LineSink:
    """Writes one line per call to a text stream."""

    def __init__(self, stream: TextIO | None = None) -> None:
        """Initialize line sink.

        Args:
            stream: Target stream (defaults to sys.stdout, looked up per write)
        """
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def __call__(self, line: str) -> None:
        self.emit(line)

    def emit(self, line: str) -> None:
        """Write a line and flush so consumers see it immediately."""
        try:
            self.stream.write(line + "\n")
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise SinkError(f"Output stream unavailable: {e}") from e


class RawLogSink:
    """Append-only file sink for raw feed responses.

    No rotation or size bound is applied here; use logrotate or similar
    if the file must be bounded.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize raw log sink.

        Args:
            path: File to append to (created on first write)
        """
        self.path = Path(path)

    def append(self, data: bytes) -> None:
        """Append bytes to the log file, creating it if absent."""
        try:
            with open(self.path, "ab") as f:
                f.write(data)
                if not data.endswith(b"\n"):
                    f.write(b"\n")
        except OSError as e:
            raise SinkError(f"Raw log {self.path} unavailable: {e}") from e

        logger.debug("Appended %d bytes to %s", len(data), self.path)
