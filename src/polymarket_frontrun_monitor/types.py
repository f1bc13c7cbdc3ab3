from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TxStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class ActivityRecord:
    type: str
    timestamp: int | float | str
    condition_id: str
    asset: str
    size: float
    usdc_size: float
    price: float
    side: str
    outcome_index: int | None
    transaction_hash: str
    status: str | None = None


@dataclass
class WatchedAddress:
    address: str
    last_seen_activity_time: int = 0


@dataclass(frozen=True)
class TradeSignal:
    trader: str
    market_id: str
    token_id: str
    outcome: str
    side: str
    size_usd: float
    price: float
    timestamp: int
    pending_tx_hash: str


def normalize_address(address: str) -> str:
    return address.strip().lower()
