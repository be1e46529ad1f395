"""
Time sources for the pool controller.

Pool timestamps are integer Unix seconds. ``SystemClock`` reads wall-clock
time; ``ManualClock`` is advanced explicitly by hosts and tests.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Protocol for anything that reports the current pool timestamp."""

    def now(self) -> int: ...


class SystemClock:
    """Wall-clock time truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """A clock that only moves when told to.

    Args:
        start: Initial timestamp in seconds.
    """

    def __init__(self, start: int = 0) -> None:
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Move the clock forward by *seconds* and return the new time."""
        if seconds < 0:
            raise ValueError("ManualClock cannot move backwards")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        """Jump to an absolute *timestamp* (never earlier than now)."""
        if timestamp < self._now:
            raise ValueError("ManualClock cannot move backwards")
        self._now = timestamp
