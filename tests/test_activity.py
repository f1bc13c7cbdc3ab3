import asyncio

import httpx
import pytest

from polymarket_frontrun_monitor.activity import (
    ActivityFetcher,
    activity_time_seconds,
    parse_activity_payload,
    parse_activity_record,
)
from polymarket_frontrun_monitor.errors import AppError, ErrorKind


def _row(**overrides):
    row = {
        "type": "TRADE",
        "timestamp": 1730000000,
        "conditionId": "m1",
        "asset": "t1",
        "size": 1000,
        "usdcSize": 500,
        "price": 0.5,
        "side": "buy",
        "outcomeIndex": 0,
        "transactionHash": "0xh1",
    }
    row.update(overrides)
    return row


def _fetcher(handler) -> ActivityFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ActivityFetcher("https://data-api.example.com/", client=client)


def test_parse_activity_record_maps_api_fields() -> None:
    record = parse_activity_record(_row(status="pending"))
    assert record is not None
    assert record.type == "TRADE"
    assert record.condition_id == "m1"
    assert record.asset == "t1"
    assert record.usdc_size == 500.0
    assert record.outcome_index == 0
    assert record.transaction_hash == "0xh1"
    assert record.status == "pending"


def test_parse_activity_record_rejects_bad_rows() -> None:
    assert parse_activity_record("not a dict") is None
    assert parse_activity_record(_row(price="abc")) is None
    assert parse_activity_record(_row(transactionHash="")) is None
    assert parse_activity_record(_row(side=None)) is None
    assert parse_activity_record(_row(side="hold")) is None


def test_parse_activity_record_keeps_missing_outcome_index_unset() -> None:
    row = _row()
    del row["outcomeIndex"]
    assert parse_activity_record(row).outcome_index is None
    assert parse_activity_record(_row(outcomeIndex=None)).outcome_index is None
    assert parse_activity_record(_row(outcomeIndex="1")).outcome_index == 1
    assert parse_activity_record(_row(side=" Sell ")).side == "SELL"


def test_parse_activity_payload_accepts_wrapped_data() -> None:
    records = parse_activity_payload({"data": [_row(), "junk", _row(transactionHash="0xh2")]})
    assert [r.transaction_hash for r in records] == ["0xh1", "0xh2"]
    assert parse_activity_payload({"error": "nope"}) == []


def test_activity_time_seconds_normalizes_formats() -> None:
    assert activity_time_seconds(1730000000) == 1730000000
    assert activity_time_seconds(1730000000123) == 1730000000
    assert activity_time_seconds("1730000000") == 1730000000
    assert activity_time_seconds("2024-10-27T03:33:20Z") == 1730000000
    assert activity_time_seconds("2024-10-27T03:33:20") == 1730000000
    assert activity_time_seconds("yesterday") is None
    assert activity_time_seconds(None) is None


def test_fetch_returns_records_and_sends_user_param() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["user"] = request.url.params["user"]
        return httpx.Response(200, json=[_row(), _row(type="REDEEM", transactionHash="0xh2")])

    records = asyncio.run(_fetcher(handler).fetch("0xaa"))
    assert seen == {"path": "/activity", "user": "0xaa"}
    assert [r.type for r in records] == ["TRADE", "REDEEM"]


def test_fetch_treats_404_as_no_activity() -> None:
    fetcher = _fetcher(lambda request: httpx.Response(404, json={"error": "not found"}))
    assert asyncio.run(fetcher.fetch("0xaa")) == []


def test_fetch_wraps_server_errors_as_network_errors() -> None:
    fetcher = _fetcher(lambda request: httpx.Response(502, text="bad gateway"))
    with pytest.raises(AppError) as info:
        asyncio.run(fetcher.fetch("0xaa"))
    assert info.value.kind is ErrorKind.NETWORK
    assert info.value.endpoint == "https://data-api.example.com/activity"
