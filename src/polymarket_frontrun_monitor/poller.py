from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from .activity import ActivityFetcher
from .detector import SignalDetector

logger = logging.getLogger(__name__)


class ActivityPoller:
    def __init__(
        self,
        fetcher: ActivityFetcher,
        detector: SignalDetector,
        addresses: Sequence[str],
        interval_seconds: float,
        *,
        is_running: Callable[[], bool] = lambda: True,
    ) -> None:
        self.fetcher = fetcher
        self.detector = detector
        self.addresses = list(addresses)
        self.interval_seconds = interval_seconds
        self.is_running = is_running
        self.ticks = 0
        self.records_seen = 0
        self.signals_emitted = 0
        self.fetch_failures = 0
        self.sink_failures = 0
        self._stopped = asyncio.Event()

    async def poll_once(self) -> int:
        """Run one tick over every watched address, in order.

        A failure for one address is logged and never aborts the others.
        """
        self.ticks += 1
        emitted = 0
        for address in self.addresses:
            if not self.is_running():
                break
            try:
                records = await self.fetcher.fetch(address)
            except Exception as exc:
                self.fetch_failures += 1
                logger.warning("Error checking activity for %s: %s", address, exc)
                continue

            if not self.is_running():
                break
            self.records_seen += len(records)
            try:
                signals = await self.detector.process(address, records)
            except Exception:
                self.sink_failures += 1
                logger.exception("Detected trade handler failed for %s", address)
                continue
            emitted += len(signals)

        self.signals_emitted += emitted
        return emitted

    async def run(self, immediate: bool = True) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        if not immediate:
            next_tick += self.interval_seconds
            await self._sleep_until(next_tick)

        while self.is_running() and not self._stopped.is_set():
            try:
                await self.poll_once()
            except Exception:
                logger.exception("Poll tick failed")

            next_tick += self.interval_seconds
            now = loop.time()
            skipped = 0
            while next_tick <= now:
                next_tick += self.interval_seconds
                skipped += 1
            if skipped:
                logger.warning(
                    "Poll tick overran its %.1fs period; skipped %d tick(s)",
                    self.interval_seconds,
                    skipped,
                )
            await self._sleep_until(next_tick)

    def stop(self) -> None:
        self._stopped.set()

    async def _sleep_until(self, deadline: float) -> None:
        delay = max(0.0, deadline - asyncio.get_running_loop().time())
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
