from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from .activity import ActivityFetcher
from .chain import ChainClient, PendingTransactionListener, TransactionStatusChecker
from .config import Settings
from .dedupe import WindowState
from .detector import SignalDetector, SignalSink
from .poller import ActivityPoller

logger = logging.getLogger(__name__)


@dataclass
class Metrics:
    venue_pending_seen: int = 0


@dataclass
class MonitorState:
    """Everything mutable for one start/stop cycle."""

    running: bool = True
    detector: SignalDetector | None = None
    poller: ActivityPoller | None = None
    poll_task: asyncio.Task[None] | None = None


class MonitorService:
    def __init__(
        self,
        settings: Settings,
        on_detected_trade: SignalSink,
        *,
        chain: ChainClient | None = None,
        fetcher: ActivityFetcher | None = None,
        listener: PendingTransactionListener | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.on_detected_trade = on_detected_trade
        self.metrics = Metrics()
        self.chain = chain or ChainClient(settings.rpc_url)
        self.status_checker = TransactionStatusChecker(self.chain)
        self.fetcher = fetcher or ActivityFetcher(
            settings.activity_api_base, limit=settings.activity_fetch_limit
        )
        self.listener = listener or PendingTransactionListener(
            settings.rpc_ws_url,
            self.chain,
            is_processed=self._has_processed,
            max_pending_lookups=settings.max_pending_lookups,
        )
        self.state: MonitorState | None = None
        self._clock = clock
        self._shutdown: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return self.state is not None and self.state.running

    async def start(self) -> None:
        if self.state is not None:
            return
        settings = self.settings
        logger.info(
            "Starting frontrun monitor for %d address(es)", len(settings.target_addresses)
        )

        state = MonitorState()

        def is_running() -> bool:
            return state.running

        state.detector = SignalDetector(
            WindowState(
                settings.target_addresses,
                settings.processed_hash_ttl_seconds,
                clock=self._clock,
            ),
            self.status_checker,
            self.on_detected_trade,
            min_trade_size_usd=settings.min_trade_size_usd,
            activity_window_seconds=settings.activity_check_window_seconds,
            is_running=is_running,
            clock=self._clock,
        )
        state.poller = ActivityPoller(
            self.fetcher,
            state.detector,
            settings.target_addresses,
            settings.fetch_interval_seconds,
            is_running=is_running,
        )
        self.state = state

        if not await self.chain.is_connected():
            logger.warning("Node %s is not reachable; receipt checks will fail open", settings.rpc_url)

        self.listener.subscribe(self._on_pending_tx)
        await state.poller.poll_once()
        # stop() may have run during the first poll.
        if state.running:
            state.poll_task = asyncio.create_task(state.poller.run(immediate=False))
            logger.info("Mempool monitoring active. Waiting for pending transactions...")

    async def stop(self) -> None:
        state, self.state = self.state, None
        if state is None:
            return
        state.running = False
        await self.listener.unsubscribe()
        if state.poller is not None:
            state.poller.stop()
        # Called from the sink inside a scheduled tick: that tick ends on its own
        # once the running flag is cleared.
        if state.poll_task is not None and state.poll_task is not asyncio.current_task():
            await asyncio.gather(state.poll_task, return_exceptions=True)
        if self._shutdown is not None:
            self._shutdown.set()
        logger.info("Mempool monitoring stopped")

    async def close(self) -> None:
        await self.fetcher.close()
        await self.chain.close()

    async def run(self) -> None:
        self._shutdown = asyncio.Event()
        await self.start()
        health_task = asyncio.create_task(self._health_loop())
        try:
            await self._shutdown.wait()
        finally:
            health_task.cancel()
            await asyncio.gather(health_task, return_exceptions=True)
            await self.stop()
            await self.close()

    def _has_processed(self, tx_hash: str) -> bool:
        state = self.state
        if state is None or state.detector is None:
            return False
        return state.detector.has_processed(tx_hash)

    def _on_pending_tx(self, tx_hash: str) -> None:
        if not self.running:
            return
        self.metrics.venue_pending_seen += 1
        logger.debug("Pending venue transaction %s", tx_hash)

    async def _health_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.health_log_interval_seconds)
            state = self.state
            if state is None or state.poller is None or state.detector is None:
                continue
            logger.info(
                (
                    "health ticks=%d records_seen=%d signals=%d confirmed_too_late=%d "
                    "fetch_failures=%d sink_failures=%d venue_pending=%d dropped_lookups=%d "
                    "processed_hashes=%d"
                ),
                state.poller.ticks,
                state.poller.records_seen,
                state.poller.signals_emitted,
                state.detector.confirmed_too_late,
                state.poller.fetch_failures,
                state.poller.sink_failures,
                self.metrics.venue_pending_seen,
                self.listener.dropped,
                len(state.detector.state.processed),
            )
