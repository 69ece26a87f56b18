from __future__ import annotations

import asyncio

import pytest

from market_seeder.config import Settings
from market_seeder.core.errors import SubmissionError
from market_seeder.core.models import Market

REQUIRED_ENV = {
    "RPC_URL": "http://localhost:8545",
    "CONTRACT_ADDRESS": "0x5FbDB2315678afecb367f032d93F642f64180aa3",
    "PRIVATE_KEY": "0x" + "11" * 32,
    "OPENAI_API_KEY": "sk-test",
}


def make_settings(**overrides) -> Settings:
    values = dict(REQUIRED_ENV)
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_markets(total: int, *, resolved_before: int = 0) -> list[Market]:
    """Markets 0..total-1; those with index < resolved_before are resolved."""

    return [
        Market(
            id=index,
            title=f"Market {index}",
            description="",
            resolve_timestamp=1_700_000_000 + index,
            resolved=index < resolved_before,
        )
        for index in range(total)
    ]


class FakeContract:
    """In-memory stand-in for MarketContractClient."""

    def __init__(self, markets: list[Market] | None = None, *, fail_titles=()) -> None:
        self.markets = list(markets or [])
        self.reads: list[int] = []
        self.created: list[tuple[str, str, int]] = []
        self.fail_titles = set(fail_titles)
        self.in_flight = 0
        self.max_in_flight = 0

    async def market_counter(self) -> int:
        return len(self.markets)

    async def get_market(self, index: int) -> Market:
        if index < 0:
            raise IndexError(index)
        self.reads.append(index)
        return self.markets[index]

    async def create_market(self, title: str, description: str, resolve_timestamp: int):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            self.created.append((title, description, resolve_timestamp))
            if title in self.fail_titles:
                raise SubmissionError(f"reverted: {title}", tx_hash="0xdead")
            return f"0x{len(self.created):064x}", 100 + len(self.created)
        finally:
            self.in_flight -= 1


@pytest.fixture
def required_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name, value in REQUIRED_ENV.items():
        monkeypatch.setenv(name, value)
    return REQUIRED_ENV
