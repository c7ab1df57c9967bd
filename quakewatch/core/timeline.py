"""Chronological ordering - Pure functions."""

from collections.abc import Iterable

from quakewatch.core.event import Event


def order_events(batch: Iterable[Event]) -> tuple[Event, ...]:
    """Order a batch of events by occurrence time, oldest first.

    Pure function. The sort is stable, so events sharing a timestamp
    keep their feed order.

    Args:
        batch: Events from one fetch, in any order

    Returns:
        Tuple of events ascending by occurred_at (empty for an empty batch)
    """
    return tuple(sorted(batch, key=lambda e: e.occurred_at))
