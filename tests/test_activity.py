"""Active market counting and gating."""

import asyncio

import pytest

from conftest import FakeContract, make_markets
from market_seeder.core.activity import count_active_markets, recent_indices
from market_seeder.core.gate import should_proceed


@pytest.mark.parametrize("total", [0, 1, 19, 20, 21, 100])
def test_reads_only_recent_window(total):
    contract = FakeContract(make_markets(total))
    active = asyncio.run(count_active_markets(contract, window=20))
    expected = min(total, 20)
    assert len(contract.reads) == expected
    assert contract.reads == list(range(total - expected, total))
    assert all(index >= 0 for index in contract.reads)
    assert active == expected


def test_counts_only_unresolved_markets():
    # 25 markets, first 22 resolved: window covers 5..24, of which 22..24 are open
    contract = FakeContract(make_markets(25, resolved_before=22))
    assert asyncio.run(count_active_markets(contract)) == 3


def test_markets_outside_window_are_ignored():
    markets = make_markets(30, resolved_before=30)
    markets[0] = markets[0].model_copy(update={"resolved": False})
    contract = FakeContract(markets)
    assert asyncio.run(count_active_markets(contract)) == 0
    assert 0 not in contract.reads


def test_read_errors_propagate():
    class Broken(FakeContract):
        async def get_market(self, index):
            raise ConnectionError("rpc down")

    with pytest.raises(ConnectionError):
        asyncio.run(count_active_markets(Broken(make_markets(3))))


def test_recent_indices_empty_for_zero_total():
    assert list(recent_indices(0)) == []
    assert list(recent_indices(3, 20)) == [0, 1, 2]


def test_gate_thresholds():
    assert should_proceed(0) is True
    assert should_proceed(4) is True
    assert should_proceed(5) is False
    assert should_proceed(6) is False
    assert should_proceed(2, threshold=2) is False
