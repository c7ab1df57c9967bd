"""Event feed client - Imperative Shell.

This module handles HTTP communication with the USGS FDSN event API.
All I/O is contained here; decoding and business logic are in the core.
"""

import logging
from datetime import date
from typing import Protocol

import requests

from quakewatch.core.config import DEFAULT_FEED_URL
from quakewatch.core.errors import ParseError, ServerError, TransportError
from quakewatch.core.event import Event, parse_events


logger = logging.getLogger(__name__)


# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30


class RawSink(Protocol):
    """Anything that accepts raw response bytes."""

    def append(self, data: bytes) -> None: ...


class FeedClient:
    """Client for fetching event batches from the feed.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_FEED_URL,
        timeout: float = DEFAULT_TIMEOUT,
        raw_sink: RawSink | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize feed client.

        Args:
            base_url: Feed query endpoint
            timeout: Request timeout in seconds
            raw_sink: Receives every successful response body (optional)
            session: HTTP session to reuse (a new one is created if omitted)
        """
        self.base_url = base_url
        self.timeout = timeout
        self.raw_sink = raw_sink
        self.session = session or requests.Session()

    def _build_params(
        self,
        start_date: date,
        end_date: date,
        min_magnitude: float,
    ) -> dict[str, str]:
        """Build query parameters for a feed request."""
        return {
            "format": "geojson",
            "starttime": start_date.isoformat(),
            "endtime": end_date.isoformat(),
            "minmagnitude": str(float(min_magnitude)),
        }

    def fetch(
        self,
        start_date: date,
        end_date: date,
        min_magnitude: float,
    ) -> list[Event]:
        """Fetch one batch of events.

        This method performs HTTP I/O. The batch is in feed order and
        carries no deduplication metadata.

        Args:
            start_date: First day to query
            end_date: Last day to query
            min_magnitude: Minimum magnitude to return

        Returns:
            Events from the feed, unordered

        Raises:
            ValueError: If the date range is inverted or min_magnitude < 0
            TransportError: If no response was obtained
            ServerError: If the feed answered with a status other than 200
            ParseError: If the body is not a valid FeatureCollection
        """
        if start_date > end_date:
            raise ValueError(f"start_date {start_date} is after end_date {end_date}")
        if min_magnitude < 0:
            raise ValueError(f"min_magnitude must be >= 0, got {min_magnitude}")

        params = self._build_params(start_date, end_date, min_magnitude)

        logger.debug(
            "Fetching events from feed",
            extra={"params": params},
        )

        try:
            response = self.session.get(
                self.base_url,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Feed request failed: {e}") from e

        if response.status_code != 200:
            raise ServerError(response.status_code)

        if self.raw_sink is not None:
            self.raw_sink.append(response.content)

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"Feed response is not valid JSON: {e}") from e

        events = parse_events(data)

        logger.info(
            "Fetched %d events from feed (%s to %s, M%.1f+)",
            len(events),
            params["starttime"],
            params["endtime"],
            min_magnitude,
        )

        return events
