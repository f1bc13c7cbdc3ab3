from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import AppError
from .types import normalize_address

DEFAULT_ACTIVITY_API_BASE = "https://data-api.polymarket.com"
DEFAULT_FETCH_INTERVAL_SECONDS = 1.0
DEFAULT_MIN_TRADE_SIZE_USD = 100.0
DEFAULT_ACTIVITY_CHECK_WINDOW_SECONDS = 30


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    rpc_ws_url: str
    target_addresses: tuple[str, ...]
    fetch_interval_seconds: float = DEFAULT_FETCH_INTERVAL_SECONDS
    min_trade_size_usd: float = DEFAULT_MIN_TRADE_SIZE_USD
    activity_check_window_seconds: int = DEFAULT_ACTIVITY_CHECK_WINDOW_SECONDS
    activity_api_base: str = DEFAULT_ACTIVITY_API_BASE
    activity_fetch_limit: int = 50
    processed_hash_ttl_seconds: int = 2 * DEFAULT_ACTIVITY_CHECK_WINDOW_SECONDS
    max_pending_lookups: int = 200
    health_log_interval_seconds: int = 60
    log_level: str = "INFO"


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise AppError.config(f"Missing required environment variable: {name}")
    return value


def _optional_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise AppError.config(f"{name} must be an integer, got {raw!r}", cause=exc) from exc


def _optional_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise AppError.config(f"{name} must be a number, got {raw!r}", cause=exc) from exc


def _address_list(name: str) -> tuple[str, ...]:
    out: list[str] = []
    for part in _required(name).split(","):
        addr = normalize_address(part)
        if not addr:
            continue
        if not addr.startswith("0x") or len(addr) != 42:
            raise AppError.config(f"{name} contains an invalid address: {part.strip()!r}")
        if addr not in out:
            out.append(addr)
    if not out:
        raise AppError.config(f"{name} must list at least one address")
    return tuple(out)


def websocket_url_for(rpc_url: str) -> str:
    if rpc_url.startswith("https://"):
        return "wss://" + rpc_url[len("https://") :]
    if rpc_url.startswith("http://"):
        return "ws://" + rpc_url[len("http://") :]
    return rpc_url


def load_settings() -> Settings:
    load_dotenv()
    rpc_url = _required("RPC_URL")
    if not rpc_url.startswith(("http://", "https://")):
        raise AppError.config("RPC_URL must be an HTTP(S) endpoint")

    window = _optional_int("ACTIVITY_CHECK_WINDOW_SECONDS", DEFAULT_ACTIVITY_CHECK_WINDOW_SECONDS)
    if window <= 0:
        raise AppError.config("ACTIVITY_CHECK_WINDOW_SECONDS must be positive")
    interval = _optional_float("FETCH_INTERVAL_SECONDS", DEFAULT_FETCH_INTERVAL_SECONDS)
    if interval <= 0:
        raise AppError.config("FETCH_INTERVAL_SECONDS must be positive")

    # Expired hashes must already be outside the activity window.
    ttl = max(_optional_int("PROCESSED_HASH_TTL_SECONDS", 2 * window), window + 1)

    return Settings(
        rpc_url=rpc_url,
        rpc_ws_url=os.getenv("RPC_WS_URL", "").strip() or websocket_url_for(rpc_url),
        target_addresses=_address_list("TARGET_ADDRESSES"),
        fetch_interval_seconds=interval,
        min_trade_size_usd=_optional_float("MIN_TRADE_SIZE_USD", DEFAULT_MIN_TRADE_SIZE_USD),
        activity_check_window_seconds=window,
        activity_api_base=os.getenv("ACTIVITY_API_BASE", DEFAULT_ACTIVITY_API_BASE).strip(),
        activity_fetch_limit=_optional_int("ACTIVITY_FETCH_LIMIT", 50),
        processed_hash_ttl_seconds=ttl,
        max_pending_lookups=_optional_int("MAX_PENDING_LOOKUPS", 200),
        health_log_interval_seconds=_optional_int("HEALTH_LOG_INTERVAL_SECONDS", 60),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
