"""Client-side rate limiting between service calls."""

import threading
from typing import Protocol, runtime_checkable


@runtime_checkable
class RateLimiter(Protocol):
    """Pause policy applied between consecutive files.

    ``pause`` returns False when the wait was cut short by cancellation.
    """

    def pause(self, cancel_event: threading.Event | None = None) -> bool: ...


class FixedDelayLimiter:
    """Waits a fixed number of seconds between calls."""

    def __init__(self, delay_seconds: float) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.delay_seconds = delay_seconds

    def pause(self, cancel_event: threading.Event | None = None) -> bool:
        if self.delay_seconds == 0:
            return not (cancel_event and cancel_event.is_set())
        event = cancel_event or threading.Event()
        # Event.wait returns True only when the event was set
        return not event.wait(self.delay_seconds)


def estimate_duration(
    file_count: int,
    estimated_call_seconds: float,
    throttle_seconds: float,
) -> float:
    """Upfront forecast in seconds: files x (call estimate + throttle delay)."""
    return file_count * (estimated_call_seconds + throttle_seconds)
