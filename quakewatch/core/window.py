"""Sliding query window - Pure functions."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone


# End the window this many days after today, so events stamped
# "tomorrow" in any timezone are still covered
DEFAULT_LOOKAHEAD_DAYS = 2

# Window length in days
DEFAULT_WINDOW_DAYS = 5


@dataclass(frozen=True)
class QueryWindow:
    """Date range for one feed query.

    Attributes:
        start_date: First day queried (inclusive)
        end_date: Last day queried
    """
    start_date: date
    end_date: date

    @property
    def start_datetime(self) -> datetime:
        """Start of the window as an aware UTC datetime (midnight)."""
        return datetime.combine(self.start_date, time.min, tzinfo=timezone.utc)


def compute_query_window(
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> QueryWindow:
    """Compute the query window relative to today.

    Pure function.

    Args:
        today: Current date
        window_days: Window length in days
        lookahead_days: Days past today the window ends

    Returns:
        QueryWindow ending lookahead_days after today
    """
    if window_days < 0:
        raise ValueError(f"window_days must be >= 0, got {window_days}")

    end = today + timedelta(days=lookahead_days)
    return QueryWindow(start_date=end - timedelta(days=window_days), end_date=end)
