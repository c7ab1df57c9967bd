"""Message formatting - Pure functions.

This module renders events as display lines and builds the shutdown
report. All functions are pure with no side effects.
"""

from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from quakewatch.core.event import Event


def format_instant(moment: datetime) -> str:
    """Format a datetime as an ISO-8601 UTC instant.

    Pure function. Fractional seconds are printed only when non-zero,
    as milliseconds where that is exact.

    Examples:
        2024-05-01T12:00:00Z
        2024-05-01T12:00:00.250Z
    """
    utc = moment.astimezone(timezone.utc)
    base = utc.strftime("%Y-%m-%dT%H:%M:%S")

    if utc.microsecond == 0:
        return f"{base}Z"
    if utc.microsecond % 1000 == 0:
        return f"{base}.{utc.microsecond // 1000:03d}Z"
    return f"{base}.{utc.microsecond:06d}Z"


def round_half_up(value: float, places: int) -> str:
    """Format a number with a fixed number of decimals, rounding ties away from zero.

    Rounds the shortest decimal form of the float, so 5.25 gives '5.3'
    where '{:.1f}' would give '5.2'.
    """
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def render_event(event: Event) -> str:
    """Render an event as a one-line display string.

    Pure function. This string is also what fingerprints are derived
    from, so changing it changes deduplication.

    Args:
        event: Event to render

    Returns:
        '<instant>: Magnitude <m> at <place> (<lat>, <lon>)'
    """
    return (
        f"{format_instant(event.occurred_at)}: "
        f"Magnitude {round_half_up(event.magnitude, 1)} at {event.place} "
        f"({round_half_up(event.latitude, 4)}, {round_half_up(event.longitude, 4)})"
    )


def find_place_matches(events: Iterable[Event], substring: str) -> list[Event]:
    """Return events whose place contains the given substring (case-sensitive)."""
    return [e for e in events if substring in e.place]


def format_summary(
    last_batch: Iterable[Event],
    region_matches: Iterable[str],
    watch_place: str,
    region_name: str,
) -> list[str]:
    """Build the shutdown report.

    Pure function.

    Args:
        last_batch: Most recent successfully fetched batch (may be empty)
        region_matches: Accumulated rendered lines of in-region events
        watch_place: Substring to look for in event places
        region_name: Display name of the monitored region

    Returns:
        Report lines, in print order
    """
    lines = ["Nearby shaker(s): "]
    lines.extend(e.place for e in find_place_matches(last_batch, watch_place))
    lines.append(f"Filter for {region_name}")
    lines.extend(region_matches)
    return lines
