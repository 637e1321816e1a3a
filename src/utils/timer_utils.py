"""Timing helpers for request and downstream call durations."""

import time


def elapsed_ms(start_time: float) -> float:
    """
    Calculate elapsed time in milliseconds since start_time.

    Args:
        start_time: Start time from time.monotonic()

    Returns:
        Elapsed time in milliseconds
    """
    return (time.monotonic() - start_time) * 1000
