"""Time helpers. All persisted timestamps are epoch milliseconds."""

from __future__ import annotations

import time


def now_ms() -> int:
    """Return current timestamp in milliseconds."""
    return int(time.time() * 1000)


def is_past(timestamp_ms: int | None, now: int | None = None) -> bool:
    """True when the timestamp is set and lies before ``now``."""
    if timestamp_ms is None:
        return False
    return timestamp_ms < (now if now is not None else now_ms())
