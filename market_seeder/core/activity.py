from __future__ import annotations

import logging
from typing import Protocol

from .models import Market

logger = logging.getLogger(__name__)

DEFAULT_RECENT_WINDOW = 20


class MarketReader(Protocol):
    async def market_counter(self) -> int: ...

    async def get_market(self, index: int) -> Market: ...


def recent_indices(total: int, window: int = DEFAULT_RECENT_WINDOW) -> range:
    """Indices of the most recent ``min(total, window)`` markets."""

    total = max(total, 0)
    size = min(total, max(window, 0))
    return range(total - size, total)


async def count_active_markets(
    contract: MarketReader,
    *,
    window: int = DEFAULT_RECENT_WINDOW,
) -> int:
    """Count unresolved markets among the most recent ones on the contract.

    Markets older than the window are never considered active, whatever their
    resolution state. Reads are issued one at a time and any error propagates.
    """

    total = await contract.market_counter()
    indices = recent_indices(total, window)
    active = 0
    for index in indices:
        market = await contract.get_market(index)
        if not market.resolved:
            active += 1

    logger.debug(
        "Inspected %s of %s markets (window=%s, active=%s)",
        len(indices),
        total,
        window,
        active,
    )
    return active
