from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any, Callable, Sequence, TypeVar

import requests
from eth_account import Account
from web3 import Web3

from ..core.errors import SubmissionError
from ..core.models import Market

logger = logging.getLogger(__name__)

T = TypeVar("T")

MARKET_CONTRACT_ABI: list[dict[str, Any]] = [
    {
        "name": "marketCounter",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "markets",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "", "type": "uint256"}],
        "outputs": [
            {
                "name": "",
                "type": "tuple",
                "components": [
                    {"name": "id", "type": "uint256"},
                    {"name": "title", "type": "string"},
                    {"name": "description", "type": "string"},
                    {"name": "resolveTimestamp", "type": "uint256"},
                    {"name": "resolved", "type": "bool"},
                ],
            }
        ],
    },
    {
        "name": "createMarket",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "title", "type": "string"},
            {"name": "description", "type": "string"},
            {"name": "resolveTimestamp", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]


def decode_market(raw: Sequence[Any]) -> Market:
    """Convert a ``markets(uint256)`` return value into a Market."""

    fields = raw
    if len(fields) == 1 and isinstance(fields[0], (list, tuple)):
        fields = fields[0]
    if len(fields) != 5:
        raise ValueError(f"Unexpected markets() return shape: {raw!r}")
    market_id, title, description, resolve_timestamp, resolved = fields
    return Market(
        id=int(market_id),
        title=str(title),
        description=str(description),
        resolve_timestamp=int(resolve_timestamp),
        resolved=bool(resolved),
    )


class MarketContractClient:
    """Async wrapper over web3.py for the prediction market contract."""

    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        private_key: str,
        *,
        timeout: float = 30.0,
        receipt_timeout: float = 120.0,
        w3: Web3 | None = None,
    ) -> None:
        self._session: requests.Session | None = None
        if w3 is None:
            self._session = requests.Session()
            w3 = Web3(
                Web3.HTTPProvider(
                    rpc_url,
                    request_kwargs={"timeout": timeout},
                    session=self._session,
                    exception_retry_configuration=None,
                )
            )
        self._w3 = w3
        self._contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=MARKET_CONTRACT_ABI,
        )
        self._account = Account.from_key(private_key)
        self._receipt_timeout = receipt_timeout

    @property
    def address(self) -> str:
        return self._account.address

    async def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    async def market_counter(self) -> int:
        return int(await self._run(self._contract.functions.marketCounter().call))

    async def get_market(self, index: int) -> Market:
        raw = await self._run(self._contract.functions.markets(index).call)
        if not isinstance(raw, (list, tuple)):
            raw = (raw,)
        return decode_market(raw)

    async def create_market(
        self,
        title: str,
        description: str,
        resolve_timestamp: int,
    ) -> tuple[str, int]:
        """Sign and send ``createMarket`` and wait for it to be mined.

        Returns the transaction hash and the block number it was included in.
        """

        return await self._run(
            self._create_market_sync, title, description, resolve_timestamp
        )

    def _create_market_sync(
        self,
        title: str,
        description: str,
        resolve_timestamp: int,
    ) -> tuple[str, int]:
        nonce = self._w3.eth.get_transaction_count(self._account.address, "pending")
        tx = self._contract.functions.createMarket(
            title, description, resolve_timestamp
        ).build_transaction(
            {
                "from": self._account.address,
                "nonce": nonce,
                "chainId": self._w3.eth.chain_id,
            }
        )
        signed = self._account.sign_transaction(tx)
        tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info("Transaction sent: %s", tx_hash_hex)

        receipt = self._w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self._receipt_timeout
        )
        if receipt["status"] != 1:
            raise SubmissionError(
                f"createMarket transaction {tx_hash_hex} reverted",
                tx_hash=tx_hash_hex,
            )
        return tx_hash_hex, int(receipt["blockNumber"])


__all__ = ["MARKET_CONTRACT_ABI", "MarketContractClient", "decode_market"]
