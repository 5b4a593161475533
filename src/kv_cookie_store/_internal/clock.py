"""Monotonic clock abstraction so scan ceilings can be tested without sleeping."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Protocol for reading elapsed time in seconds.  Inject a fake in tests."""

    def monotonic(self) -> float: ...


class SystemClock:
    """Default clock backed by :func:`time.monotonic`."""

    def monotonic(self) -> float:
        return time.monotonic()
