"""Geographic region filtering - Pure functions.

This module decides whether an event falls inside the monitored region.
All functions are pure with no side effects.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from quakewatch.core.event import Event


@dataclass(frozen=True)
class BoundingBox:
    """Geographic bounding box.

    Attributes:
        min_latitude: Southern boundary
        max_latitude: Northern boundary
        min_longitude: Western boundary
        max_longitude: Eastern boundary
    """
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float

    def contains(self, latitude: float, longitude: float) -> bool:
        """Check if a point is within this bounding box (edges included)."""
        return (
            self.min_latitude <= latitude <= self.max_latitude
            and self.min_longitude <= longitude <= self.max_longitude
        )


# North America: 7N to 83N latitude, 167W to 52.5W longitude
NORTH_AMERICA = BoundingBox(
    min_latitude=7.0,
    max_latitude=83.0,
    min_longitude=-167.0,
    max_longitude=-52.5,
)


def is_in_region(event: Event, bounds: BoundingBox = NORTH_AMERICA) -> bool:
    """Check if an event's epicenter is within a bounding box.

    Pure function.

    Args:
        event: Event to check
        bounds: Region to check against

    Returns:
        True if the event is within bounds
    """
    return bounds.contains(event.latitude, event.longitude)


def partition_by_region(
    events: Iterable[Event],
    bounds: BoundingBox = NORTH_AMERICA,
) -> tuple[list[Event], list[Event]]:
    """Split events into (inside, outside) the region, preserving order.

    Pure function.
    """
    inside: list[Event] = []
    outside: list[Event] = []
    for event in events:
        (inside if is_in_region(event, bounds) else outside).append(event)
    return inside, outside
