"""Retry cadence - Pure functions.

The scheduler waits the base interval after a successful cycle and
backs off exponentially while the feed keeps failing.
"""


def compute_delay(
    base_interval: float,
    consecutive_failures: int,
    multiplier: float = 2.0,
    max_delay: float = 600.0,
) -> float:
    """Compute the wait before the next cycle.

    Pure function.

    Args:
        base_interval: Delay after a successful cycle, in seconds
        consecutive_failures: Failed cycles in a row (0 after a success)
        multiplier: Growth factor per consecutive failure
        max_delay: Upper bound on the delay, in seconds

    Returns:
        Delay in seconds
    """
    if consecutive_failures <= 0:
        return base_interval

    # Never shorter than the base interval, even if max_delay is misconfigured
    ceiling = max(base_interval, max_delay)
    try:
        delay = base_interval * multiplier ** consecutive_failures
    except OverflowError:
        return ceiling
    return min(delay, ceiling)
