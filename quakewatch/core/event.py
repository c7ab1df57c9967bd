"""Event data model and parsing - Pure functions.

This module decodes USGS GeoJSON features into typed Event objects.
All functions are pure with no side effects.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from quakewatch.core.errors import ParseError


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Event:
    """Immutable seismic event.

    The feed fields consumed here carry no stable identifier, so an
    Event is identified only by its values (see core.dedup).

    Attributes:
        magnitude: Event magnitude
        place: Human-readable location description
        occurred_at: Event time (UTC, millisecond resolution)
        latitude: Epicenter latitude in degrees
        longitude: Epicenter longitude in degrees
        depth_km: Depth in kilometers
    """
    magnitude: float
    place: str
    occurred_at: datetime
    latitude: float
    longitude: float
    depth_km: float

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)


def from_epoch_millis(time_ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime without float rounding."""
    return EPOCH + timedelta(milliseconds=time_ms)


def _require_number(value: Any, field_name: str) -> float:
    # bool is an int subclass; JSON true/false is not a number here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"Field '{field_name}' must be a number, got {value!r}")
    try:
        number = float(value)
    except OverflowError as e:
        raise ParseError(f"Field '{field_name}' out of range: {value!r}") from e
    if not math.isfinite(number):
        raise ParseError(f"Field '{field_name}' must be finite, got {value!r}")
    return number


def _require_mapping(container: dict[str, Any], key: str) -> dict[str, Any]:
    value = container.get(key)
    if not isinstance(value, dict):
        raise ParseError(f"Field '{key}' is missing or not an object")
    return value


def parse_event(feature: Any) -> Event:
    """Parse a single GeoJSON feature into an Event.

    Pure function.

    Args:
        feature: GeoJSON feature dict from the feed

    Returns:
        Event object

    Raises:
        ParseError: If a required field is missing or has the wrong type
    """
    if not isinstance(feature, dict):
        raise ParseError(f"Feature must be an object, got {type(feature).__name__}")

    props = _require_mapping(feature, "properties")
    geometry = _require_mapping(feature, "geometry")

    coords = geometry.get("coordinates")
    if not isinstance(coords, list) or len(coords) < 3:
        raise ParseError("Field 'geometry.coordinates' must hold [longitude, latitude, depth]")

    place = props.get("place")
    if not isinstance(place, str):
        raise ParseError(f"Field 'properties.place' must be a string, got {place!r}")

    # USGS uses milliseconds since epoch
    time_ms = props.get("time")
    if isinstance(time_ms, bool) or not isinstance(time_ms, int):
        raise ParseError(f"Field 'properties.time' must be an integer, got {time_ms!r}")

    try:
        occurred_at = from_epoch_millis(time_ms)
    except (OverflowError, OSError) as e:
        raise ParseError(f"Field 'properties.time' out of range: {time_ms!r}") from e

    return Event(
        magnitude=_require_number(props.get("mag"), "properties.mag"),
        place=place,
        occurred_at=occurred_at,
        longitude=_require_number(coords[0], "geometry.coordinates[0]"),
        latitude=_require_number(coords[1], "geometry.coordinates[1]"),
        depth_km=_require_number(coords[2], "geometry.coordinates[2]"),
    )


def parse_events(geojson: Any) -> list[Event]:
    """Parse a GeoJSON FeatureCollection into a list of Events.

    Pure function. Feed order is preserved; ordering is the
    timeline's job.

    Args:
        geojson: Decoded FeatureCollection from the feed

    Returns:
        List of Event objects in feed order

    Raises:
        ParseError: If 'features' is missing or any feature is invalid
    """
    if not isinstance(geojson, dict):
        raise ParseError("Payload must be a JSON object")

    features = geojson.get("features")
    if not isinstance(features, list):
        raise ParseError("Payload is missing the 'features' list")

    return [parse_event(feature) for feature in features]
