from __future__ import annotations

DEFAULT_ACTIVE_THRESHOLD = 5


def should_proceed(active_count: int, threshold: int = DEFAULT_ACTIVE_THRESHOLD) -> bool:
    """Return True when there are few enough active markets to seed new ones."""

    return active_count < threshold
