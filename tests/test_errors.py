from polymarket_frontrun_monitor.errors import AppError, ErrorKind


def test_error_codes_follow_kind() -> None:
    assert AppError.config("missing").code == "CONFIG_ERROR"
    assert AppError.trade_execution("rejected").code == "TRADE_EXECUTION_ERROR"
    assert AppError.balance("short").code == "BALANCE_ERROR"
    assert AppError.market("closed").code == "MARKET_ERROR"
    assert AppError.network("timeout").code == "NETWORK_ERROR"


def test_kind_specific_fields() -> None:
    trade = AppError.trade_execution("rejected", market_id="m1", token_id="t1")
    assert trade.kind is ErrorKind.TRADE_EXECUTION
    assert (trade.market_id, trade.token_id) == ("m1", "t1")

    balance = AppError.balance("short", required=100.0, available=25.0)
    assert (balance.required, balance.available) == (100.0, 25.0)
    assert balance.endpoint is None


def test_cause_is_chained() -> None:
    cause = TimeoutError("read timed out")
    err = AppError.network("request failed", endpoint="https://example.com", cause=cause)
    assert err.cause is cause
    assert err.__cause__ is cause
    assert err.endpoint == "https://example.com"
    assert str(err) == "request failed"
