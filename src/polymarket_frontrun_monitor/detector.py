from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable

from .activity import activity_time_seconds
from .chain import TransactionStatusChecker
from .dedupe import WindowState
from .formatting import describe_signal
from .types import ActivityRecord, TradeSignal, TxStatus, normalize_address

logger = logging.getLogger(__name__)

SignalSink = Callable[[TradeSignal], Awaitable[None]]


def trade_size_usd(record: ActivityRecord) -> float:
    if record.usdc_size:
        return record.usdc_size
    return record.size * record.price


class SignalDetector:
    """Turns activity records into trade signals.

    Owns the window state. The hash and last-seen time are committed before
    the sink is awaited, so a failing sink can never cause a re-emission.
    """

    def __init__(
        self,
        state: WindowState,
        status_checker: TransactionStatusChecker,
        on_detected_trade: SignalSink,
        *,
        min_trade_size_usd: float,
        activity_window_seconds: int,
        is_running: Callable[[], bool] = lambda: True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.state = state
        self.status_checker = status_checker
        self.on_detected_trade = on_detected_trade
        self.min_trade_size_usd = min_trade_size_usd
        self.activity_window_seconds = activity_window_seconds
        self.is_running = is_running
        self._clock = clock
        self.confirmed_too_late = 0

    def has_processed(self, tx_hash: str) -> bool:
        return tx_hash in self.state.processed

    async def process(
        self, address: str, records: Iterable[ActivityRecord], now: int | None = None
    ) -> list[TradeSignal]:
        trader = normalize_address(address)
        if now is None:
            now = int(self._clock())
        cutoff = now - self.activity_window_seconds

        emitted: list[TradeSignal] = []
        for record in records:
            if not self.is_running():
                break
            if record.type != "TRADE":
                continue

            activity_time = activity_time_seconds(record.timestamp)
            if activity_time is None or activity_time < cutoff:
                continue
            if self.has_processed(record.transaction_hash):
                continue
            if activity_time <= self.state.last_seen(trader):
                continue

            size_usd = trade_size_usd(record)
            if size_usd < self.min_trade_size_usd:
                continue

            status = await self.status_checker.status(record.transaction_hash)
            if not self.is_running():
                break
            # Another tick may have classified this hash while we were waiting.
            if self.has_processed(record.transaction_hash):
                continue
            if status is TxStatus.CONFIRMED:
                self.state.processed.add(record.transaction_hash, activity_time)
                self.confirmed_too_late += 1
                logger.debug("Trade %s already confirmed, skipping", record.transaction_hash)
                continue

            signal = TradeSignal(
                trader=trader,
                market_id=record.condition_id,
                token_id=record.asset,
                outcome="YES" if record.outcome_index == 0 else "NO",
                side=record.side.upper(),
                size_usd=size_usd,
                price=record.price,
                timestamp=activity_time * 1000,
                pending_tx_hash=record.transaction_hash,
            )
            self.state.processed.add(record.transaction_hash, activity_time)
            self.state.advance(trader, activity_time)

            logger.info("Detected pending trade: %s", describe_signal(signal))
            emitted.append(signal)
            await self.on_detected_trade(signal)

        return emitted
