from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Protocol, Sequence

from .config import Settings, load_settings
from .core.activity import MarketReader, count_active_markets
from .core.errors import ConfigurationError
from .core.gate import should_proceed
from .core.models import PriceQuote, ProposalBatch, RunReport
from .core.proposals import MarketProposer
from .core.submission import MarketSubmitter, MarketWriter
from .ingress.contract import MarketContractClient
from .ingress.prices import CoinGeckoClient
from .integrations.openai_client import OpenAIChatClient

logger = logging.getLogger(__name__)


class PriceSource(Protocol):
    async def fetch_prices(self) -> PriceQuote: ...


class Proposer(Protocol):
    async def propose(self, quote: PriceQuote) -> ProposalBatch: ...


class SeederContract(MarketReader, MarketWriter, Protocol):
    pass


async def run_once(
    settings: Settings,
    *,
    contract: SeederContract,
    prices: PriceSource,
    proposer: Proposer,
    dry_run: bool = False,
) -> RunReport:
    """Run the seeding pipeline once: count, gate, price, propose, submit."""

    active_count = await count_active_markets(
        contract, window=settings.recent_market_window
    )
    logger.info("Active on-chain markets: %s", active_count)

    if not should_proceed(active_count, settings.active_market_threshold):
        logger.info(
            "Too many active markets (%s >= %s). Skipping...",
            active_count,
            settings.active_market_threshold,
        )
        return RunReport(status="skipped", active_count=active_count)

    quote = await prices.fetch_prices()
    logger.info("Fetched prices: %s", quote.prices)

    batch = await proposer.propose(quote)
    logger.info(
        "Generated %s markets (%s rejected)", len(batch.markets), batch.rejected
    )

    report = RunReport(
        status="dry_run" if dry_run else "completed",
        active_count=active_count,
        prices=quote.prices,
        proposed=len(batch.markets),
        rejected=batch.rejected,
    )
    if dry_run:
        for market in batch.markets:
            logger.info(
                "Dry run, not submitting %r (resolves in %sh)",
                market.title,
                market.resolve_in_hours,
            )
        return report

    submitter = MarketSubmitter(contract)
    report.submitted = await submitter.submit_all(batch.markets)
    return report


async def run_seeder(settings: Settings, *, dry_run: bool = False) -> RunReport:
    """Build the real clients from settings and run the pipeline once."""

    contract = MarketContractClient(
        settings.rpc_url,
        settings.contract_address,
        settings.private_key.get_secret_value(),
        timeout=settings.rpc_timeout,
        receipt_timeout=settings.receipt_timeout,
    )
    price_client = CoinGeckoClient(settings.price_api_url, timeout=settings.request_timeout)
    chat_client = OpenAIChatClient(
        settings.openai_api_key.get_secret_value(),
        model=settings.openai_model,
        temperature=settings.openai_temperature,
        base_url=settings.openai_base_url,
        timeout=settings.request_timeout,
    )
    proposer = MarketProposer(
        chat_client,
        count=settings.proposal_count,
        horizon_hours=settings.proposal_horizon_hours,
    )

    logger.info(
        "Seeder configuration loaded (contract=%s, signer=%s, model=%s, threshold=%s, window=%s)",
        settings.contract_address,
        contract.address,
        settings.openai_model,
        settings.active_market_threshold,
        settings.recent_market_window,
    )

    try:
        report = await run_once(
            settings,
            contract=contract,
            prices=price_client,
            proposer=proposer,
            dry_run=dry_run,
        )
    finally:
        await price_client.close()
        await chat_client.close()
        await contract.close()

    logger.info(
        "Run finished (status=%s, proposed=%s, submitted=%s)",
        report.status,
        report.proposed,
        len(report.submitted),
    )
    return report


async def run_loop(settings: Settings, *, dry_run: bool = False) -> None:
    interval = settings.seed_interval_sec
    while True:
        try:
            await run_seeder(settings, dry_run=dry_run)
        except Exception:
            logger.exception("Seeding iteration failed")
        logger.info("Seeder sleeping for %ss", interval)
        await asyncio.sleep(interval)


def cli(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Create new prediction markets when too few are active"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Propose markets but do not submit any transactions",
    )
    parser.add_argument(
        "--loop",
        action="store_true",
        help="Run continuously using SEED_INTERVAL_SEC interval",
    )
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ConfigurationError:
        logger.exception("Configuration error")
        return 2

    try:
        if args.loop:
            asyncio.run(run_loop(settings, dry_run=args.dry_run))
        else:
            asyncio.run(run_seeder(settings, dry_run=args.dry_run))
    except KeyboardInterrupt:
        logger.info("Seeder interrupted")
        return 130
    except Exception:
        logger.exception("Seeding run failed")
        return 1
    return 0


def configure_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    for noisy in ("httpx", "httpcore", "urllib3", "web3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def main() -> None:
    configure_logging()
    sys.exit(cli())


__all__ = ["cli", "configure_logging", "main", "run_loop", "run_once", "run_seeder"]
