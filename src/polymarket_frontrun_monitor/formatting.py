from __future__ import annotations

from datetime import datetime, timezone

from .types import TradeSignal


def short_address(address: str | None) -> str:
    if not address:
        return "Unknown"
    addr = address.strip()
    if len(addr) <= 12:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"


def signal_time_iso(ts_ms: int) -> str:
    dt = datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def build_trade_link(tx_hash: str | None) -> str | None:
    if not tx_hash:
        return None
    return f"https://polygonscan.com/tx/{tx_hash}"


def describe_signal(signal: TradeSignal) -> str:
    return (
        f"{signal.side} {signal.outcome} ${signal.size_usd:,.2f} @ {signal.price:g} "
        f"market={signal.market_id} trader={short_address(signal.trader)} "
        f"time={signal_time_iso(signal.timestamp)} tx={build_trade_link(signal.pending_tx_hash)}"
    )
