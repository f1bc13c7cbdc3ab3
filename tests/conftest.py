"""Shared test doubles."""

from __future__ import annotations

import pytest

from polymarket_frontrun_monitor.types import ActivityRecord, TradeSignal

NOW = 1730000000
WATCHED = "0xAA00000000000000000000000000000000000001"


class DummyChain:
    def __init__(self, receipts=None, fail: bool = False) -> None:
        self.receipts = receipts or {}
        self.fail = fail
        self.receipt_calls: list[str] = []
        self.closed = False

    async def is_connected(self) -> bool:
        return True

    async def get_transaction(self, tx_hash: str):
        return None

    async def get_transaction_receipt(self, tx_hash: str):
        self.receipt_calls.append(tx_hash)
        if self.fail:
            raise ConnectionError("node down")
        return self.receipts.get(tx_hash)

    async def close(self) -> None:
        self.closed = True


class RecordingSink:
    def __init__(self, fail: bool = False) -> None:
        self.signals: list[TradeSignal] = []
        self.fail = fail

    async def __call__(self, signal: TradeSignal) -> None:
        self.signals.append(signal)
        if self.fail:
            raise RuntimeError("order rejected")


def make_record(**overrides) -> ActivityRecord:
    fields = dict(
        type="TRADE",
        timestamp=NOW - 5,
        condition_id="m1",
        asset="t1",
        size=1000.0,
        usdc_size=500.0,
        price=0.5,
        side="buy",
        outcome_index=0,
        transaction_hash="0xh1",
    )
    fields.update(overrides)
    return ActivityRecord(**fields)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
