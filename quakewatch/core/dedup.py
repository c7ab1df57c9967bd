"""Deduplication logic.

The feed fields we consume carry no stable event identifier, so an
event's fingerprint is derived from its rendered display line. Two
distinct events that render identically (same second-level time,
magnitude to one decimal, place, and coordinates to four decimals)
collide and only the first is reported.

DedupIndex is the only long-lived state besides the region accumulator.
It is bounded two ways: entries for events older than the query window
are evicted after each cycle, and a hard cap evicts the least recently
seen entries.
"""

import hashlib
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime

from quakewatch.core.event import Event
from quakewatch.core.formatter import render_event


# Default cap on tracked fingerprints (0 = unbounded)
DEFAULT_MAX_ENTRIES = 10000


def fingerprint_text(rendered_text: str) -> str:
    """Compute a fingerprint from a rendered display line.

    Pure function.
    """
    return hashlib.sha256(rendered_text.encode("utf-8")).hexdigest()


def fingerprint(event: Event) -> str:
    """Compute an event's fingerprint.

    Pure function.

    Args:
        event: Event to fingerprint

    Returns:
        Hex digest of the event's rendered form
    """
    return fingerprint_text(render_event(event))


@dataclass(frozen=True)
class DedupEntry:
    """A recorded fingerprint.

    Attributes:
        rendered_text: Last rendered line seen for this fingerprint
        occurred_at: Event time, used for window eviction (None = never evicted by time)
    """
    rendered_text: str
    occurred_at: datetime | None = None


class DedupIndex:
    """Tracks which event fingerprints have already been emitted."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        """Initialize an empty index.

        Args:
            max_entries: Maximum fingerprints kept; least recently seen
                are evicted beyond this (0 disables the cap)
        """
        if max_entries < 0:
            raise ValueError(f"max_entries must be >= 0, got {max_entries}")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, DedupEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def is_new(self, key: str) -> bool:
        """Return True iff the fingerprint has never been recorded (or was evicted)."""
        return key not in self._entries

    def get(self, key: str) -> DedupEntry | None:
        """Return the entry for a fingerprint, or None."""
        return self._entries.get(key)

    def record(
        self,
        key: str,
        rendered_text: str,
        occurred_at: datetime | None = None,
    ) -> None:
        """Store or overwrite a fingerprint and mark it most recently seen.

        Called for every processed event, new or not.
        """
        self._entries[key] = DedupEntry(rendered_text=rendered_text, occurred_at=occurred_at)
        self._entries.move_to_end(key)

        if self.max_entries:
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def evict_older_than(self, cutoff: datetime) -> int:
        """Drop entries whose event time is before the cutoff.

        Args:
            cutoff: Aware datetime; usually the start of the query window

        Returns:
            Number of entries evicted
        """
        stale = [
            key for key, entry in self._entries.items()
            if entry.occurred_at is not None and entry.occurred_at < cutoff
        ]
        for key in stale:
            del self._entries[key]
        return len(stale)
