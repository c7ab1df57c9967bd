"""PollScheduler - Wires Functional Core and Imperative Shell.

This module drives the repeating fetch -> order -> dedup -> filter ->
emit cycle. It owns the only mutable state in the application: the
DedupIndex, the region-match accumulator and the last good batch.

Everything runs on a single thread. A threading.Event is the stop
signal; it is checked before and after the blocking fetch and the wait
between cycles returns as soon as it is set.
"""

import logging
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from quakewatch.core.backoff import compute_delay
from quakewatch.core.config import Config
from quakewatch.core.dedup import DedupIndex, fingerprint_text
from quakewatch.core.errors import FeedError, StateError
from quakewatch.core.event import Event
from quakewatch.core.formatter import format_summary, render_event
from quakewatch.core.region import partition_by_region
from quakewatch.core.timeline import order_events
from quakewatch.core.window import QueryWindow, compute_query_window
from quakewatch.shell.feed_client import FeedClient
from quakewatch.shell.sinks import LineSink, RawLogSink


logger = logging.getLogger(__name__)


class FeedSource(Protocol):
    """Supplies a raw batch of events for a query window."""

    def fetch(
        self,
        start_date: date,
        end_date: date,
        min_magnitude: float,
    ) -> list[Event]: ...


@dataclass
class CycleResult:
    """Result of one poll cycle.

    Attributes:
        window: Query window used (None if cancelled before computing it)
        events_fetched: Events in the fetched batch
        events_new: Events emitted as newly seen
        region_matches: Events inside the monitored region
        error: Diagnostic if the fetch failed
        cancelled: True if the stop signal cut the cycle short
    """
    window: QueryWindow | None = None
    events_fetched: int = 0
    events_new: int = 0
    region_matches: int = 0
    error: str | None = None
    cancelled: bool = False

    @property
    def success(self) -> bool:
        """Returns True if the batch was fetched and processed."""
        return self.error is None and not self.cancelled

    @property
    def summary(self) -> str:
        """Human-readable summary of the cycle."""
        if self.cancelled:
            return "Cycle cancelled"
        if self.error:
            return f"Cycle failed: {self.error}"
        return (
            f"Fetched {self.events_fetched} events, "
            f"{self.events_new} new, "
            f"{self.region_matches} in region"
        )


class PollScheduler:
    """Polls the feed on an interval and streams newly seen events.

    This class wires together:
    - Feed client (fetches event batches)
    - Core functions (ordering, fingerprints, region filter)
    - DedupIndex (which events were already emitted)
    - Output sink (receives one line per new event)
    """

    def __init__(
        self,
        config: Config,
        feed_client: FeedSource | None = None,
        emit: Callable[[str], None] | None = None,
        dedup_index: DedupIndex | None = None,
        stop_event: threading.Event | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize scheduler with configuration.

        Args:
            config: Application configuration
            feed_client: Event source (FeedClient created if not provided)
            emit: Receives rendered lines of new events (stdout if not provided)
            dedup_index: Fingerprint index (created if not provided)
            stop_event: Stop signal (created if not provided)
            today: Returns the current date; the query window is relative to it
        """
        self.config = config

        if feed_client is None:
            raw_sink = RawLogSink(config.raw_log_path) if config.raw_log_path else None
            feed_client = FeedClient(
                base_url=config.feed_url,
                timeout=config.request_timeout_seconds,
                raw_sink=raw_sink,
            )
        self.feed_client = feed_client
        self.emit = emit if emit is not None else LineSink()

        if dedup_index is None:
            dedup_index = DedupIndex(max_entries=config.max_dedup_entries)
        self.dedup_index = dedup_index

        # Not deduplicated: the same event matches again every cycle it is fetched
        self.region_matches: deque[str] = deque(maxlen=config.max_region_matches or None)

        self._stop_event = stop_event if stop_event is not None else threading.Event()
        self._today = today
        self._last_batch: tuple[Event, ...] = ()
        self._running = False
        self.consecutive_failures = 0

    @property
    def last_batch(self) -> tuple[Event, ...]:
        """Most recent successfully fetched batch, in time order (empty before the first)."""
        return self._last_batch

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Ask the loop to finish. Safe to call from a signal handler or another thread."""
        self._stop_event.set()

    def next_delay(self) -> float:
        """Seconds to wait before the next cycle, backed off after failures."""
        return compute_delay(
            self.config.poll_interval_seconds,
            self.consecutive_failures,
            multiplier=self.config.backoff_multiplier,
            max_delay=self.config.max_backoff_seconds,
        )

    def _process_batch(self, ordered: tuple[Event, ...]) -> tuple[int, int]:
        """Emit new events, record every fingerprint, collect region matches.

        Returns:
            (new event count, region match count)
        """
        new_count = 0

        for event in ordered:
            rendered = render_event(event)
            key = fingerprint_text(rendered)

            if self.dedup_index.is_new(key):
                self.emit(rendered)
                new_count += 1

            self.dedup_index.record(key, rendered, event.occurred_at)

        inside, outside = partition_by_region(ordered, self.config.region.bounds)
        self.region_matches.extend(render_event(e) for e in inside)

        logger.debug(
            "%d events in %s, %d outside",
            len(inside),
            self.config.region.name,
            len(outside),
        )

        return new_count, len(inside)

    def run_cycle(self) -> CycleResult:
        """Run one fetch -> order -> dedup -> filter -> emit cycle.

        Feed failures are logged and leave all state as it was.

        Returns:
            CycleResult describing what happened

        Raises:
            SinkError: If the output or raw log sink is unavailable
        """
        if self.stopped:
            return CycleResult(cancelled=True)

        window = compute_query_window(
            self._today(),
            window_days=self.config.window_days,
            lookahead_days=self.config.lookahead_days,
        )

        try:
            batch = self.feed_client.fetch(
                window.start_date,
                window.end_date,
                self.config.min_magnitude,
            )
        except FeedError as e:
            self.consecutive_failures += 1
            error_msg = e.describe()
            logger.error(
                "Error retrieving events for %s to %s: %s (%d consecutive failures)",
                window.start_date,
                window.end_date,
                error_msg,
                self.consecutive_failures,
            )
            return CycleResult(window=window, error=error_msg)

        if self.stopped:
            logger.info("Stop requested; discarding batch of %d events", len(batch))
            return CycleResult(window=window, events_fetched=len(batch), cancelled=True)

        ordered = order_events(batch)
        new_count, region_count = self._process_batch(ordered)

        evicted = self.dedup_index.evict_older_than(window.start_datetime)
        if evicted:
            logger.debug("Evicted %d fingerprints older than %s", evicted, window.start_date)

        self._last_batch = ordered
        self.consecutive_failures = 0

        return CycleResult(
            window=window,
            events_fetched=len(ordered),
            events_new=new_count,
            region_matches=region_count,
        )

    def run(self, max_cycles: int | None = None) -> int:
        """Poll until stopped or max_cycles cycles have run.

        Args:
            max_cycles: Stop after this many cycles (None = until stop())

        Returns:
            Number of cycles run

        Raises:
            ValueError: If max_cycles is less than 1
            StateError: If the scheduler is already running
            SinkError: If an output sink becomes unavailable
        """
        if max_cycles is not None and max_cycles < 1:
            raise ValueError(f"max_cycles must be at least 1, got {max_cycles}")
        if self._running:
            raise StateError("PollScheduler is already running")

        self._running = True
        cycles = 0

        logger.info(
            "Polling %s every %.0fs (M%.1f+, %d-day window)",
            self.config.feed_url,
            self.config.poll_interval_seconds,
            self.config.min_magnitude,
            self.config.window_days,
        )

        try:
            while not self.stopped:
                result = self.run_cycle()
                if result.cancelled:
                    break

                cycles += 1
                logger.info("Cycle %d: %s", cycles, result.summary)

                if max_cycles is not None and cycles >= max_cycles:
                    break

                delay = self.next_delay()
                if self.consecutive_failures:
                    logger.warning("Retrying in %.0fs", delay)

                if self._stop_event.wait(delay):
                    break
        finally:
            self._running = False

        logger.info("Stopped after %d cycles", cycles)
        return cycles

    def summary_lines(self) -> list[str]:
        """Build the shutdown report from the last batch and region matches."""
        return format_summary(
            self.last_batch,
            self.region_matches,
            self.config.watch_place,
            self.config.region.name,
        )
