from __future__ import annotations

import math
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator

COIN_SYMBOLS: dict[str, str] = {
    "bitcoin": "BTC",
    "ethereum": "ETH",
    "solana": "SOL",
    "near": "NEAR",
}


class Market(BaseModel):
    """Market entry as stored by the prediction market contract."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    description: str
    resolve_timestamp: int = Field(alias="resolveTimestamp")
    resolved: bool


class PriceQuote(BaseModel):
    """Current USD prices keyed by ticker symbol."""

    prices: dict[str, float]

    def as_lines(self) -> list[str]:
        return [f"{symbol}: ${_format_price(price)}" for symbol, price in self.prices.items()]


def _format_price(value: float) -> str:
    return f"{value:.8f}".rstrip("0").rstrip(".")


MAX_RESOLVE_IN_HOURS = 24 * 7


class ProposedMarket(BaseModel):
    """Market idea returned by the completion service."""

    title: str
    description: str
    resolve_in_hours: Union[StrictInt, StrictFloat]

    @field_validator("title", "description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("resolve_in_hours")
    @classmethod
    def _bounded_hours(cls, value: float) -> float:
        if not math.isfinite(value) or value <= 0 or value > MAX_RESOLVE_IN_HOURS:
            raise ValueError(
                f"must be a number of hours in (0, {MAX_RESOLVE_IN_HOURS}]"
            )
        return value


class ProposalBatch(BaseModel):
    """Outcome of parsing one completion response."""

    markets: list[ProposedMarket] = Field(default_factory=list)
    rejected: int = 0
    raw_text: str | None = None

    @property
    def parse_failed(self) -> bool:
        return self.raw_text is not None


class SubmittedMarket(BaseModel):
    """Confirmed createMarket transaction."""

    title: str
    resolve_timestamp: int
    tx_hash: str
    block_number: int


class RunReport(BaseModel):
    """Summary of a single seeding run."""

    status: Literal["skipped", "completed", "dry_run"]
    active_count: int
    prices: dict[str, float] = Field(default_factory=dict)
    proposed: int = 0
    rejected: int = 0
    submitted: list[SubmittedMarket] = Field(default_factory=list)


__all__ = [
    "COIN_SYMBOLS",
    "MAX_RESOLVE_IN_HOURS",
    "Market",
    "PriceQuote",
    "ProposalBatch",
    "ProposedMarket",
    "RunReport",
    "SubmittedMarket",
]
