"""Error taxonomy.

Feed errors (TransportError, ServerError, ParseError) are recoverable:
the scheduler logs them and skips the cycle. SinkError means an output
channel is gone and the process cannot continue.
"""


class QuakewatchError(Exception):
    """Base class for all quakewatch errors."""


class FeedError(QuakewatchError):
    """A single fetch from the event feed failed."""

    kind = "FeedError"

    def describe(self) -> str:
        """One-line diagnostic naming the error kind."""
        return f"{self.kind}: {self}"


class TransportError(FeedError):
    """Network or connection failure before a response was obtained."""

    kind = "TransportError"


class ServerError(FeedError):
    """The feed answered with a non-success status code."""

    kind = "ServerError"

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(message or f"feed returned HTTP {status_code}")

    def describe(self) -> str:
        return f"ServerError({self.status_code}): {self}"


class ParseError(FeedError):
    """The feed payload could not be decoded into events."""

    kind = "ParseError"


class StateError(QuakewatchError):
    """The scheduler was driven in a way its state does not allow."""


class SinkError(QuakewatchError):
    """An output sink (stdout, raw log file) is unavailable."""
