from __future__ import annotations

import json
import logging
import re
from typing import Protocol

from pydantic import ValidationError

from .models import PriceQuote, ProposalBatch, ProposedMarket

logger = logging.getLogger(__name__)

_OPEN_FENCE_RE = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\n?")


class CompletionClient(Protocol):
    async def complete(self, prompt: str) -> str: ...


def build_prompt(quote: PriceQuote, *, count: int = 5, horizon_hours: int = 8) -> str:
    price_lines = "\n".join(quote.as_lines())
    return f"""
Current crypto prices:
{price_lines}

Please create {count} prediction markets related to BTC, ETH, SOL, or NEAR, that can resolve within the next {horizon_hours} hours.
Each market should have:
- Title
- Short description
- Clear question formulation.

Respond strictly in JSON array format:
[
  {{ "title": "...", "description": "...", "resolve_in_hours": {horizon_hours} }},
  ...
]
"""


def strip_code_fence(text: str) -> str:
    """Return the body of a fenced code block, or the trimmed text if unfenced.

    The opening fence is removed first and the closing fence only if present,
    so a reply cut off before its closing fence still parses.
    """

    start = text.find("```")
    if start == -1:
        return text.strip()
    body = _OPEN_FENCE_RE.sub("", text[start:], count=1)
    end = body.find("```")
    if end != -1:
        body = body[:end]
    return body.strip()


def parse_proposals(text: str) -> ProposalBatch:
    """Parse a completion into proposed markets.

    Unparseable text yields an empty batch. Entries that fail validation are
    dropped one by one and counted in ``rejected``.
    """

    cleaned = strip_code_fence(text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.error("Failed to parse completion response: %s", text)
        return ProposalBatch(raw_text=text)

    if not isinstance(payload, list):
        logger.error("Completion response is not a JSON array: %s", text)
        return ProposalBatch(raw_text=text)

    markets: list[ProposedMarket] = []
    rejected = 0
    for position, entry in enumerate(payload):
        try:
            markets.append(ProposedMarket.model_validate(entry))
        except ValidationError as exc:
            rejected += 1
            logger.warning(
                "Dropping proposed market #%s (%s): %r",
                position,
                "; ".join(error["msg"] for error in exc.errors()),
                entry,
            )

    return ProposalBatch(markets=markets, rejected=rejected)


class MarketProposer:
    """Asks the completion service for new market ideas based on current prices."""

    def __init__(
        self,
        client: CompletionClient,
        *,
        count: int = 5,
        horizon_hours: int = 8,
    ) -> None:
        self._client = client
        self._count = count
        self._horizon_hours = horizon_hours

    async def propose(self, quote: PriceQuote) -> ProposalBatch:
        prompt = build_prompt(quote, count=self._count, horizon_hours=self._horizon_hours)
        text = await self._client.complete(prompt)
        batch = parse_proposals(text)
        if not batch.parse_failed and len(batch.markets) != self._count:
            logger.warning(
                "Requested %s markets, received %s usable (%s rejected)",
                self._count,
                len(batch.markets),
                batch.rejected,
            )
        return batch


__all__ = [
    "MarketProposer",
    "build_prompt",
    "parse_proposals",
    "strip_code_fence",
]
