"""Polygon node access: pending-transaction feed and receipt lookups.

The pending feed is an early-warning trigger only. Trade details come from
the activity poller; here we just confirm that a pending transaction is
headed for one of the venue contracts.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import websockets
from web3 import AsyncWeb3
from web3.exceptions import TransactionNotFound
from web3.providers import AsyncHTTPProvider

from .types import TxStatus

logger = logging.getLogger(__name__)

# CTF Exchange, NegRisk CTF Exchange, NegRisk Adapter, Conditional Tokens.
POLYMARKET_CONTRACTS: frozenset[str] = frozenset(
    addr.lower()
    for addr in (
        "0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E",
        "0xC5d563A36AE78145C45a50134d48A1215220f80a",
        "0xd91E80cF2E7be2e162c6513ceD06f1dD0dA35296",
        "0x4D97DCd97eC945f40cF65F87097ACe5EA0476045",
    )
)


class ChainClient:
    """Thin async wrapper over web3 that maps "not found" to ``None``."""

    def __init__(self, rpc_url: str, *, w3: AsyncWeb3 | None = None) -> None:
        self.rpc_url = rpc_url
        self._w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url))

    async def is_connected(self) -> bool:
        try:
            return bool(await self._w3.is_connected())
        except Exception as exc:
            logger.warning("Node connectivity check failed (rpc=%s): %s", self.rpc_url, exc)
            return False

    async def get_transaction(self, tx_hash: str) -> Mapping[str, Any] | None:
        try:
            return await self._w3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return None

    async def get_transaction_receipt(self, tx_hash: str) -> Mapping[str, Any] | None:
        try:
            return await self._w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None

    async def close(self) -> None:
        disconnect = getattr(self._w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()


class TransactionStatusChecker:
    def __init__(self, chain: ChainClient) -> None:
        self.chain = chain

    async def status(self, tx_hash: str) -> TxStatus:
        """CONFIRMED once a receipt exists; anything else, errors included, is PENDING."""
        try:
            receipt = await self.chain.get_transaction_receipt(tx_hash)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug("Receipt lookup failed for %s, assuming pending: %s", tx_hash, exc)
            return TxStatus.PENDING
        return TxStatus.CONFIRMED if receipt else TxStatus.PENDING


class PendingTransactionListener:
    def __init__(
        self,
        ws_url: str,
        chain: ChainClient,
        *,
        targets: Iterable[str] = POLYMARKET_CONTRACTS,
        is_processed: Callable[[str], bool] | None = None,
        max_pending_lookups: int = 200,
    ) -> None:
        self.ws_url = ws_url
        self.chain = chain
        self.targets = frozenset(t.lower() for t in targets)
        self.is_processed = is_processed or (lambda _tx_hash: False)
        self.max_pending_lookups = max_pending_lookups
        self.dropped = 0
        self._callback: Callable[[str], None] | None = None
        self._task: asyncio.Task[None] | None = None
        self._lookups: set[asyncio.Task[bool]] = set()

    def subscribe(self, on_pending_tx: Callable[[str], None]) -> None:
        self._callback = on_pending_tx
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._listen())

    async def unsubscribe(self) -> None:
        # In-flight lookups finish on their own but no longer reach the callback.
        self._callback = None
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _listen(self) -> None:
        backoff = 1.0
        while True:
            try:
                async with websockets.connect(self.ws_url, ping_interval=20, ping_timeout=20) as ws:
                    await ws.send(
                        json.dumps(
                            {
                                "jsonrpc": "2.0",
                                "id": 1,
                                "method": "eth_subscribe",
                                "params": ["newPendingTransactions"],
                            }
                        )
                    )
                    logger.info("Subscribed to pending transactions on %s", self.ws_url)
                    backoff = 1.0

                    async for raw in ws:
                        tx_hash = parse_pending_notification(raw)
                        if tx_hash is not None:
                            self._dispatch(tx_hash)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Pending tx feed disconnected (%s). Reconnecting in %.1fs", exc, backoff)
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, 30.0)

    def _dispatch(self, tx_hash: str) -> None:
        if len(self._lookups) >= self.max_pending_lookups:
            self.dropped += 1
            return
        task = asyncio.create_task(self.inspect(tx_hash))
        self._lookups.add(task)
        task.add_done_callback(self._lookups.discard)

    async def inspect(self, tx_hash: str) -> bool:
        """Report ``tx_hash`` to the callback if it targets a venue contract.

        Lookups race against block propagation, so every failure here is
        treated as "not found".
        """
        try:
            if self.is_processed(tx_hash):
                return False
            tx = await self.chain.get_transaction(tx_hash)
            if not tx:
                return False
            to_address = tx.get("to")
            if not to_address or str(to_address).lower() not in self.targets:
                return False
            callback = self._callback
            if callback is None:
                return False
            callback(tx_hash)
            return True
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug("Pending tx %s lookup failed: %s", tx_hash, exc)
            return False


def parse_pending_notification(raw: str | bytes) -> str | None:
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict) or payload.get("method") != "eth_subscription":
        return None
    params = payload.get("params")
    if not isinstance(params, dict):
        return None
    result = params.get("result")
    # Some nodes send full transaction objects instead of bare hashes.
    if isinstance(result, dict):
        result = result.get("hash")
    if isinstance(result, str) and result.startswith("0x"):
        return result
    return None
