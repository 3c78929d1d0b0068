"""Sleep interval between status queries."""

__all__ = ["next_sleep"]


def next_sleep(
    elapsed: int,
    median: int,
    total_checks: int,
    fast_poll_seconds: int,
    slow_poll_seconds: int,
    fast_poll_percent: int,
) -> int:
    """Poll fast near the expected finish or before CI reports anything, slow otherwise."""
    if median > 0 and elapsed * 100 >= median * fast_poll_percent:
        return fast_poll_seconds
    if total_checks == 0:
        return fast_poll_seconds
    return slow_poll_seconds
