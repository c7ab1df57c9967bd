"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Event feed client (HTTP)
- Output and raw log sinks (stdout, files)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from quakewatch.shell.feed_client import FeedClient
from quakewatch.shell.sinks import LineSink, RawLogSink
from quakewatch.shell.config_loader import load_config, load_config_from_env

__all__ = [
    "FeedClient",
    "LineSink",
    "RawLogSink",
    "load_config",
    "load_config_from_env",
]
