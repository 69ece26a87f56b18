from __future__ import annotations

import logging
import math
from typing import Any

import httpx

from ..core.errors import PriceDataError
from ..core.models import COIN_SYMBOLS, PriceQuote

logger = logging.getLogger(__name__)


def parse_price_payload(payload: Any) -> PriceQuote:
    """Map a CoinGecko simple-price payload onto ticker symbols.

    Every coin must be present with a positive USD price; nothing is defaulted.
    """

    if not isinstance(payload, dict):
        raise PriceDataError(f"Expected a JSON object from price API, got {type(payload).__name__}")

    prices: dict[str, float] = {}
    for coin, symbol in COIN_SYMBOLS.items():
        entry = payload.get(coin)
        if not isinstance(entry, dict) or "usd" not in entry:
            raise PriceDataError(f"Price API response is missing a USD price for {coin}")
        value = entry["usd"]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise PriceDataError(f"Price for {coin} is not a number: {value!r}")
        if not math.isfinite(value) or value <= 0:
            raise PriceDataError(f"Price for {coin} is not positive: {value!r}")
        prices[symbol] = float(value)

    return PriceQuote(prices=prices)


class CoinGeckoClient:
    """Async HTTP client for the CoinGecko simple price endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def fetch_prices(self) -> PriceQuote:
        """Fetch current USD prices for the tracked coins in a single request."""

        params = {
            "ids": ",".join(COIN_SYMBOLS),
            "vs_currencies": "usd",
        }
        response = await self._client.get(self._base_url, params=params)
        response.raise_for_status()
        quote = parse_price_payload(response.json())
        logger.debug("Parsed price quote %s", quote.prices)
        return quote

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "CoinGeckoClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
