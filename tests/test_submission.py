"""Resolve timestamps and sequential market creation."""

import asyncio
import math
from datetime import datetime, timezone

import pytest

from conftest import FakeContract
from market_seeder.core.errors import SubmissionError
from market_seeder.core.models import ProposedMarket
from market_seeder.core.submission import MarketSubmitter, resolve_timestamp
from market_seeder.ingress.contract import decode_market

NOW = datetime(2024, 5, 1, 12, 0, 0, 250000, tzinfo=timezone.utc)


def _proposal(title: str, hours: float = 8) -> ProposedMarket:
    return ProposedMarket(title=title, description=f"{title} description", resolve_in_hours=hours)


def test_resolve_timestamp_for_eight_hours():
    now_ms = int(NOW.timestamp() * 1000)
    assert resolve_timestamp(NOW, 8) == math.floor((now_ms + 8 * 3600 * 1000) / 1000)


def test_resolve_timestamp_is_strictly_in_the_future():
    now = datetime(2024, 5, 1, 12, 0, 0, 100000, tzinfo=timezone.utc)
    # 0.0001h is 0.36s, which would floor back onto the current second
    assert resolve_timestamp(now, 0.0001) > now.timestamp()


def test_submit_all_in_order_with_timestamps():
    contract = FakeContract()
    submitter = MarketSubmitter(contract, clock=lambda: NOW)
    results = asyncio.run(
        submitter.submit_all([_proposal("first", 1), _proposal("second", 2), _proposal("third", 8)])
    )

    assert [title for title, _, _ in contract.created] == ["first", "second", "third"]
    assert contract.created[0][1] == "first description"
    assert [result.resolve_timestamp for result in results] == [
        resolve_timestamp(NOW, 1),
        resolve_timestamp(NOW, 2),
        resolve_timestamp(NOW, 8),
    ]
    assert [result.block_number for result in results] == [101, 102, 103]
    assert contract.max_in_flight == 1


def test_failure_aborts_remaining_submissions(caplog):
    contract = FakeContract(fail_titles={"second"})
    submitter = MarketSubmitter(contract, clock=lambda: NOW)
    with pytest.raises(SubmissionError):
        asyncio.run(
            submitter.submit_all([_proposal("first"), _proposal("second"), _proposal("third")])
        )
    assert [title for title, _, _ in contract.created] == ["first", "second"]
    assert "Failed to create market 'second'" in caplog.text


def test_decode_market_accepts_flat_and_nested_tuples():
    flat = decode_market((3, "Title", "Desc", 1_700_000_000, True))
    nested = decode_market([(3, "Title", "Desc", 1_700_000_000, True)])
    assert flat == nested
    assert flat.id == 3
    assert flat.resolved is True
    with pytest.raises(ValueError):
        decode_market((1, 2))


def test_timestamp_failure_is_logged_and_aborts(caplog):
    contract = FakeContract()
    submitter = MarketSubmitter(contract, clock=lambda: NOW)
    runaway = ProposedMarket.model_construct(
        title="runaway", description="unvalidated", resolve_in_hours=1e12
    )
    with pytest.raises(OverflowError):
        asyncio.run(submitter.submit_all([runaway, _proposal("after")]))
    assert contract.created == []
    assert "Failed to create market 'runaway'" in caplog.text
