from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Protocol

from .models import ProposedMarket, SubmittedMarket

logger = logging.getLogger(__name__)


class MarketWriter(Protocol):
    async def create_market(
        self, title: str, description: str, resolve_timestamp: int
    ) -> tuple[str, int]: ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve_timestamp(now: datetime, hours: float) -> int:
    """Unix seconds ``hours`` after ``now``, always strictly later than ``now``."""

    resolve_at = (now + timedelta(hours=hours)).timestamp()
    return max(math.floor(resolve_at), math.floor(now.timestamp()) + 1)


class MarketSubmitter:
    """Creates proposed markets on-chain one after another."""

    def __init__(
        self,
        contract: MarketWriter,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._contract = contract
        self._clock = clock

    async def submit(self, market: ProposedMarket) -> SubmittedMarket:
        try:
            timestamp = resolve_timestamp(self._clock(), market.resolve_in_hours)
            logger.info(
                "Creating market %r (%s), resolves at %s",
                market.title,
                market.description,
                datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat(),
            )
            tx_hash, block_number = await self._contract.create_market(
                market.title, market.description, timestamp
            )
        except Exception:
            logger.exception("Failed to create market %r", market.title)
            raise

        logger.info("Market created successfully (tx=%s, block=%s)", tx_hash, block_number)
        return SubmittedMarket(
            title=market.title,
            resolve_timestamp=timestamp,
            tx_hash=tx_hash,
            block_number=block_number,
        )

    async def submit_all(self, markets: Iterable[ProposedMarket]) -> List[SubmittedMarket]:
        """Submit in order, awaiting each confirmation; the first failure aborts the rest."""

        results: List[SubmittedMarket] = []
        for market in markets:
            results.append(await self.submit(market))
        return results


__all__ = ["MarketSubmitter", "resolve_timestamp", "utcnow"]
