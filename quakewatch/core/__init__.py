"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Event data parsing and rendering
- Chronological ordering
- Fingerprints and deduplication
- Region filtering
- Query window and retry delay computation

Everything here is deterministic and has no I/O. DedupIndex is the one
stateful piece; it holds data in memory only.
"""

from quakewatch.core.event import Event, parse_event, parse_events
from quakewatch.core.formatter import render_event, format_summary
from quakewatch.core.timeline import order_events
from quakewatch.core.dedup import DedupIndex, fingerprint
from quakewatch.core.region import BoundingBox, NORTH_AMERICA, is_in_region
from quakewatch.core.window import QueryWindow, compute_query_window
from quakewatch.core.backoff import compute_delay

__all__ = [
    # Event
    "Event",
    "parse_event",
    "parse_events",
    # Formatter
    "render_event",
    "format_summary",
    # Timeline
    "order_events",
    # Dedup
    "DedupIndex",
    "fingerprint",
    # Region
    "BoundingBox",
    "NORTH_AMERICA",
    "is_in_region",
    # Window
    "QueryWindow",
    "compute_query_window",
    # Backoff
    "compute_delay",
]
