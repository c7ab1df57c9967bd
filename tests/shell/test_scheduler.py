"""Tests for the PollScheduler module.

Tests the coordination between functional core and imperative shell.
Uses mocks for the feed client and stop signal.
"""

import logging
import threading
from datetime import date, datetime, timedelta, timezone
from unittest.mock import Mock, call

import pytest

from quakewatch.core.config import Config
from quakewatch.core.dedup import DedupIndex, fingerprint
from quakewatch.core.errors import (
    ParseError,
    ServerError,
    SinkError,
    StateError,
    TransportError,
)
from quakewatch.core.event import Event, parse_events
from quakewatch.core.formatter import render_event
from quakewatch.scheduler import CycleResult, PollScheduler


TODAY = date(2024, 5, 10)
BASE_TIME = datetime(2024, 5, 9, 12, 0, 0, tzinfo=timezone.utc)


def make_event(place: str, minutes: int = 0, latitude: float = 37.77, longitude: float = -122.42) -> Event:
    """Create an event offset from BASE_TIME (inside North America by default)."""
    return Event(
        magnitude=5.2,
        place=place,
        occurred_at=BASE_TIME + timedelta(minutes=minutes),
        latitude=latitude,
        longitude=longitude,
        depth_km=10.0,
    )


@pytest.fixture
def config():
    """Create a default configuration."""
    return Config()


@pytest.fixture
def feed_client():
    """Create a mock feed client returning an empty batch."""
    client = Mock()
    client.fetch.return_value = []
    return client


@pytest.fixture
def emitted():
    """Collects emitted lines."""
    return []


@pytest.fixture
def stop_event():
    """Mock stop signal whose wait() returns immediately."""
    event = Mock()
    event.is_set.return_value = False
    event.wait.return_value = False
    return event


@pytest.fixture
def scheduler(config, feed_client, emitted, stop_event):
    """Create a scheduler wired to mocks."""
    return PollScheduler(
        config,
        feed_client=feed_client,
        emit=emitted.append,
        stop_event=stop_event,
        today=lambda: TODAY,
    )


class TestCycleResult:
    """Tests for CycleResult dataclass."""

    def test_success_when_no_error(self):
        """success is True for a processed batch."""
        assert CycleResult(events_fetched=3).success is True

    def test_failure_when_error(self):
        """success is False when the fetch failed."""
        assert CycleResult(error="TransportError: down").success is False

    def test_cancelled_is_not_success(self):
        """A cancelled cycle did not succeed."""
        assert CycleResult(cancelled=True).success is False

    def test_summary_format(self):
        """summary property returns readable string."""
        result = CycleResult(events_fetched=10, events_new=3, region_matches=2)
        assert result.summary == "Fetched 10 events, 3 new, 2 in region"

    def test_summary_includes_error(self):
        """Failed cycles summarize the error."""
        assert "ServerError(500)" in CycleResult(error="ServerError(500): x").summary


class TestRunCycle:
    """Tests for PollScheduler.run_cycle()."""

    def test_queries_sliding_window(self, scheduler, feed_client):
        """Fetch uses the window relative to today and the configured magnitude."""
        scheduler.run_cycle()

        feed_client.fetch.assert_called_once_with(date(2024, 5, 7), date(2024, 5, 12), 5.0)

    def test_emits_new_events_in_time_order(self, scheduler, feed_client, emitted):
        """New events are emitted oldest first."""
        late, early = make_event("late", 30), make_event("early", 0)
        feed_client.fetch.return_value = [late, early]

        result = scheduler.run_cycle()

        assert emitted == [render_event(early), render_event(late)]
        assert result.events_fetched == 2
        assert result.events_new == 2
        assert result.success is True

    def test_duplicate_within_batch_emitted_once(self, scheduler, feed_client, emitted):
        """Identically rendered events in one batch are emitted once."""
        feed_client.fetch.return_value = [make_event("same"), make_event("same")]

        result = scheduler.run_cycle()

        assert len(emitted) == 1
        assert result.events_new == 1

    def test_repeat_across_cycles_not_reemitted(self, scheduler, feed_client, emitted):
        """Second cycle suppresses the event but still updates the index."""
        event = make_event("repeat")
        feed_client.fetch.return_value = [event]
        scheduler.dedup_index = Mock(wraps=DedupIndex())

        first = scheduler.run_cycle()
        second = scheduler.run_cycle()

        assert emitted == [render_event(event)]
        assert first.events_new == 1
        assert second.events_new == 0
        assert scheduler.dedup_index.record.call_count == 2
        scheduler.dedup_index.record.assert_called_with(
            fingerprint(event), render_event(event), event.occurred_at
        )

    def test_region_split(self, scheduler, feed_client, emitted):
        """Only the in-region event is accumulated; both are emitted."""
        inside = make_event("California", 0)
        outside = make_event("Japan", 1, latitude=35.68, longitude=139.69)
        feed_client.fetch.return_value = [inside, outside]

        result = scheduler.run_cycle()

        assert list(scheduler.region_matches) == [render_event(inside)]
        assert len(emitted) == 2
        assert result.region_matches == 1

    def test_region_matches_repeat_across_cycles(self, scheduler, feed_client):
        """The region accumulator is not deduplicated."""
        feed_client.fetch.return_value = [make_event("California")]

        scheduler.run_cycle()
        scheduler.run_cycle()

        assert len(scheduler.region_matches) == 2

    def test_region_matches_are_capped(self, feed_client, emitted, stop_event):
        """Oldest region matches are dropped beyond the cap."""
        scheduler = PollScheduler(
            Config(max_region_matches=2),
            feed_client=feed_client,
            emit=emitted.append,
            stop_event=stop_event,
            today=lambda: TODAY,
        )
        feed_client.fetch.return_value = [make_event(str(i), i) for i in range(3)]

        scheduler.run_cycle()

        assert list(scheduler.region_matches) == [
            render_event(make_event("1", 1)),
            render_event(make_event("2", 2)),
        ]

    def test_empty_batch(self, scheduler, feed_client, emitted):
        """Empty batch: no emission, no error."""
        result = scheduler.run_cycle()

        assert result.success is True
        assert result.events_fetched == 0
        assert emitted == []
        assert scheduler.last_batch == ()

    def test_server_error_leaves_state_untouched(self, scheduler, feed_client, emitted, caplog):
        """HTTP 500 is logged and nothing changes."""
        event = make_event("California")
        feed_client.fetch.return_value = [event]
        scheduler.run_cycle()

        index_before = len(scheduler.dedup_index)
        matches_before = list(scheduler.region_matches)
        batch_before = scheduler.last_batch

        feed_client.fetch.side_effect = ServerError(500)
        with caplog.at_level(logging.ERROR):
            result = scheduler.run_cycle()

        assert result.success is False
        assert result.error.startswith("ServerError(500)")
        assert "ServerError(500)" in caplog.text
        assert len(scheduler.dedup_index) == index_before
        assert list(scheduler.region_matches) == matches_before
        assert scheduler.last_batch == batch_before
        assert emitted == [render_event(event)]

    @pytest.mark.parametrize(
        "error, kind",
        [
            (TransportError("connection refused"), "TransportError"),
            (ParseError("missing features"), "ParseError"),
        ],
    )
    def test_feed_errors_are_not_fatal(self, scheduler, feed_client, error, kind):
        """Transport and parse errors end the cycle with a diagnostic."""
        feed_client.fetch.side_effect = error

        result = scheduler.run_cycle()

        assert result.error.startswith(kind)
        assert scheduler.consecutive_failures == 1

    def test_out_of_range_time_ends_cycle(self, scheduler, feed_client, emitted):
        """A feed time past the datetime range fails the cycle, not the process."""
        payload = {
            "features": [
                {
                    "properties": {"mag": 4.0, "place": "far future", "time": 10**16},
                    "geometry": {"coordinates": [-122.4, 37.7, 5.0]},
                }
            ]
        }
        feed_client.fetch.side_effect = lambda *args: parse_events(payload)

        result = scheduler.run_cycle()

        assert result.success is False
        assert result.error.startswith("ParseError")
        assert emitted == []
        assert scheduler.last_batch == ()
        assert scheduler.consecutive_failures == 1

    def test_success_resets_failures(self, scheduler, feed_client):
        """A good cycle resets the failure count."""
        feed_client.fetch.side_effect = [TransportError("down"), TransportError("down"), []]

        scheduler.run_cycle()
        scheduler.run_cycle()
        assert scheduler.consecutive_failures == 2

        scheduler.run_cycle()
        assert scheduler.consecutive_failures == 0

    def test_sink_error_propagates(self, scheduler, feed_client):
        """An unavailable output is fatal."""
        scheduler.emit = Mock(side_effect=SinkError("stdout closed"))
        feed_client.fetch.return_value = [make_event("x")]

        with pytest.raises(SinkError):
            scheduler.run_cycle()

    def test_evicts_fingerprints_older_than_window(self, scheduler, feed_client):
        """Events before the window start do not stay in the index."""
        stale = Event(
            magnitude=5.0,
            place="stale",
            occurred_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
            latitude=0.0,
            longitude=0.0,
            depth_km=1.0,
        )
        fresh = make_event("fresh")
        feed_client.fetch.return_value = [stale, fresh]

        scheduler.run_cycle()

        assert fingerprint(stale) not in scheduler.dedup_index
        assert fingerprint(fresh) in scheduler.dedup_index

    def test_stopped_before_fetch(self, scheduler, feed_client, stop_event):
        """No fetch happens once stop is requested."""
        stop_event.is_set.return_value = True

        result = scheduler.run_cycle()

        assert result.cancelled is True
        feed_client.fetch.assert_not_called()

    def test_stop_during_fetch_discards_batch(self, config, emitted):
        """A batch that arrives after stop() is not processed."""
        feed_client = Mock()
        scheduler = PollScheduler(
            config,
            feed_client=feed_client,
            emit=emitted.append,
            today=lambda: TODAY,
        )

        def fetch_then_stop(*args):
            scheduler.stop()
            return [make_event("late arrival")]

        feed_client.fetch.side_effect = fetch_then_stop

        result = scheduler.run_cycle()

        assert result.cancelled is True
        assert emitted == []
        assert len(scheduler.dedup_index) == 0
        assert scheduler.last_batch == ()


class TestLastBatch:
    """Tests for the last known good batch."""

    def test_empty_before_first_success(self, scheduler):
        """last_batch is an empty tuple, never None."""
        assert scheduler.last_batch == ()

    def test_holds_ordered_batch(self, scheduler, feed_client):
        """last_batch is the ordered batch of the latest success."""
        late, early = make_event("late", 5), make_event("early", 0)
        feed_client.fetch.return_value = [late, early]

        scheduler.run_cycle()

        assert scheduler.last_batch == (early, late)


class TestRun:
    """Tests for PollScheduler.run()."""

    def test_runs_max_cycles(self, scheduler, feed_client, stop_event):
        """Loop stops after max_cycles, waiting the interval in between."""
        cycles = scheduler.run(max_cycles=3)

        assert cycles == 3
        assert feed_client.fetch.call_count == 3
        assert stop_event.wait.call_args_list == [call(60.0), call(60.0)]

    @pytest.mark.parametrize("max_cycles", [0, -1])
    def test_rejects_non_positive_max_cycles(self, scheduler, feed_client, max_cycles):
        """A cycle limit below one runs nothing."""
        with pytest.raises(ValueError, match="max_cycles"):
            scheduler.run(max_cycles=max_cycles)

        feed_client.fetch.assert_not_called()

    def test_backs_off_after_failures(self, scheduler, feed_client, stop_event):
        """Consecutive failures lengthen the wait; success resets it."""
        feed_client.fetch.side_effect = [
            TransportError("down"),
            ServerError(503),
            [],
            [],
        ]

        scheduler.run(max_cycles=4)

        assert stop_event.wait.call_args_list == [call(120.0), call(240.0), call(60.0)]

    def test_stops_when_wait_is_interrupted(self, scheduler, feed_client, stop_event):
        """A stop during the wait ends the loop."""
        stop_event.wait.return_value = True

        cycles = scheduler.run()

        assert cycles == 1
        assert feed_client.fetch.call_count == 1

    def test_does_not_start_when_stopped(self, scheduler, feed_client, stop_event):
        """run() returns immediately if already stopped."""
        stop_event.is_set.return_value = True

        assert scheduler.run() == 0
        feed_client.fetch.assert_not_called()

    def test_stop_from_another_thread(self, config, feed_client, emitted):
        """stop() interrupts a long wait."""
        scheduler = PollScheduler(
            Config(poll_interval_seconds=3600, max_backoff_seconds=3600),
            feed_client=feed_client,
            emit=emitted.append,
            today=lambda: TODAY,
        )
        timer = threading.Timer(0.1, scheduler.stop)
        timer.start()
        try:
            cycles = scheduler.run()
        finally:
            timer.cancel()

        assert cycles == 1
        assert scheduler.stopped is True

    def test_reentrant_run_raises_state_error(self, scheduler, feed_client):
        """run() cannot be called while the loop is running."""
        def reenter(*args):
            with pytest.raises(StateError):
                scheduler.run()
            return []

        feed_client.fetch.side_effect = reenter

        assert scheduler.run(max_cycles=1) == 1

    def test_can_run_again_after_finishing(self, scheduler, feed_client):
        """The running flag is cleared when run() returns."""
        scheduler.run(max_cycles=1)
        scheduler.run(max_cycles=1)

        assert feed_client.fetch.call_count == 2


class TestSummaryLines:
    """Tests for PollScheduler.summary_lines()."""

    def test_report_before_any_success(self, scheduler):
        """Report is safe with no batch at all."""
        assert scheduler.summary_lines() == [
            "Nearby shaker(s): ",
            "Filter for North America",
        ]

    def test_report_lists_watch_place_and_region(self, scheduler, feed_client):
        """Report lists Julian events and region matches."""
        julian = make_event("4km N of Julian, CA", 0, latitude=33.1, longitude=-116.6)
        tokyo = make_event("Tokyo, Japan", 1, latitude=35.68, longitude=139.69)
        feed_client.fetch.return_value = [julian, tokyo]

        scheduler.run_cycle()

        assert scheduler.summary_lines() == [
            "Nearby shaker(s): ",
            "4km N of Julian, CA",
            "Filter for North America",
            render_event(julian),
        ]
