"""Tests for output sinks."""

import io
from unittest.mock import Mock

import pytest

from quakewatch.core.errors import SinkError
from quakewatch.shell.sinks import LineSink, RawLogSink


class TestLineSink:
    """Tests for LineSink."""

    def test_writes_one_line_per_call(self):
        """Each emitted string ends with a newline."""
        stream = io.StringIO()
        sink = LineSink(stream)

        sink.emit("first")
        sink("second")

        assert stream.getvalue() == "first\nsecond\n"

    def test_defaults_to_stdout(self, capsys):
        """Without a stream, lines go to stdout."""
        LineSink().emit("hello")

        assert capsys.readouterr().out == "hello\n"

    def test_broken_pipe_raises_sink_error(self):
        """A closed output raises SinkError."""
        stream = Mock()
        stream.write.side_effect = BrokenPipeError("pipe closed")

        with pytest.raises(SinkError):
            LineSink(stream).emit("line")

    def test_closed_stream_raises_sink_error(self):
        """Writing to a closed file object raises SinkError, not ValueError."""
        stream = io.StringIO()
        stream.close()

        with pytest.raises(SinkError, match="unavailable"):
            LineSink(stream).emit("line")


class TestRawLogSink:
    """Tests for RawLogSink."""

    def test_creates_file_if_absent(self, tmp_path):
        """First append creates the file."""
        path = tmp_path / "raw.log"

        RawLogSink(path).append(b'{"features": []}')

        assert path.read_bytes() == b'{"features": []}\n'

    def test_appends_without_truncating(self, tmp_path):
        """Later appends keep earlier content."""
        path = tmp_path / "raw.log"
        sink = RawLogSink(path)

        sink.append(b"one\n")
        sink.append(b"two")

        assert path.read_bytes() == b"one\ntwo\n"

    def test_unwritable_path_raises_sink_error(self, tmp_path):
        """A missing directory makes the sink unavailable."""
        sink = RawLogSink(tmp_path / "missing" / "raw.log")

        with pytest.raises(SinkError):
            sink.append(b"data")
