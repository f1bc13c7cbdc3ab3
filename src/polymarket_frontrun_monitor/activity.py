from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from .errors import AppError
from .types import ActivityRecord

logger = logging.getLogger(__name__)


class ActivityFetcher:
    def __init__(
        self,
        api_base: str,
        limit: int = 50,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.limit = limit
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, address: str) -> list[ActivityRecord]:
        """Recent activity for ``address``; a 404 means none yet."""
        url = f"{self.api_base}/activity"
        try:
            resp = await self._client.get(url, params={"user": address, "limit": self.limit})
            if resp.status_code == 404:
                logger.debug("No activity for %s yet", address)
                return []
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as exc:
            raise AppError.network(
                f"Activity request failed for {address}: {exc}", endpoint=url, cause=exc
            ) from exc
        except ValueError as exc:
            raise AppError.network(
                f"Activity response for {address} is not JSON", endpoint=url, cause=exc
            ) from exc
        return parse_activity_payload(payload)


def parse_activity_payload(payload: Any) -> list[ActivityRecord]:
    rows: Any = payload
    if isinstance(payload, dict):
        rows = payload.get("data", [])
    if not isinstance(rows, list):
        return []

    records: list[ActivityRecord] = []
    for row in rows:
        record = parse_activity_record(row)
        if record is not None:
            records.append(record)
    return records


def parse_activity_record(row: Any) -> ActivityRecord | None:
    if not isinstance(row, dict):
        return None

    try:
        size = float(row.get("size") or 0)
        usdc_size = float(row.get("usdcSize") or 0)
        price = float(row.get("price") or 0)
        raw_index = row.get("outcomeIndex")
        outcome_index = None if raw_index in (None, "") else int(raw_index)
    except (TypeError, ValueError):
        return None

    tx_hash = _string_or_none(row.get("transactionHash"))
    if tx_hash is None:
        return None

    side = str(row.get("side") or "").strip().upper()
    if side not in ("BUY", "SELL"):
        return None

    return ActivityRecord(
        type=str(row.get("type", "")).upper(),
        timestamp=row.get("timestamp", 0),
        condition_id=str(row.get("conditionId") or ""),
        asset=str(row.get("asset") or ""),
        size=size,
        usdc_size=usdc_size,
        price=price,
        side=side,
        outcome_index=outcome_index,
        transaction_hash=tx_hash,
        status=_string_or_none(row.get("status")),
    )


def activity_time_seconds(raw: Any) -> int | None:
    """Normalize an activity timestamp (seconds, millis or ISO-8601) to epoch seconds."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        ts = int(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            ts = int(float(text))
        except ValueError:
            try:
                dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return int(dt.timestamp())
    else:
        return None

    if ts > 10**12:
        ts //= 1000
    return ts


def _string_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
