import pytest

from polymarket_frontrun_monitor.config import load_settings, websocket_url_for
from polymarket_frontrun_monitor.errors import AppError, ErrorKind

ADDR = "0xAA00000000000000000000000000000000000001"

_ENV_NAMES = (
    "RPC_URL",
    "RPC_WS_URL",
    "TARGET_ADDRESSES",
    "FETCH_INTERVAL_SECONDS",
    "MIN_TRADE_SIZE_USD",
    "ACTIVITY_CHECK_WINDOW_SECONDS",
    "PROCESSED_HASH_TTL_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("polymarket_frontrun_monitor.config.load_dotenv", lambda: None)
    return monkeypatch


def test_load_settings_defaults(clean_env) -> None:
    clean_env.setenv("RPC_URL", "https://polygon-rpc.example.com")
    clean_env.setenv("TARGET_ADDRESSES", f" {ADDR} ,{ADDR.lower()},")

    settings = load_settings()

    assert settings.rpc_ws_url == "wss://polygon-rpc.example.com"
    assert settings.target_addresses == (ADDR.lower(),)
    assert settings.fetch_interval_seconds == 1.0
    assert settings.min_trade_size_usd == 100.0
    assert settings.activity_check_window_seconds == 30
    assert settings.processed_hash_ttl_seconds == 60


def test_overrides_and_ttl_clamp(clean_env) -> None:
    clean_env.setenv("RPC_URL", "http://localhost:8545")
    clean_env.setenv("RPC_WS_URL", "ws://localhost:8546")
    clean_env.setenv("TARGET_ADDRESSES", ADDR)
    clean_env.setenv("MIN_TRADE_SIZE_USD", "250.5")
    clean_env.setenv("PROCESSED_HASH_TTL_SECONDS", "10")

    settings = load_settings()

    assert settings.rpc_ws_url == "ws://localhost:8546"
    assert settings.min_trade_size_usd == 250.5
    assert settings.processed_hash_ttl_seconds == 31


def test_missing_rpc_url_is_config_error(clean_env) -> None:
    clean_env.setenv("TARGET_ADDRESSES", ADDR)
    with pytest.raises(AppError) as info:
        load_settings()
    assert info.value.kind is ErrorKind.CONFIG


@pytest.mark.parametrize(
    "name,value",
    [
        ("TARGET_ADDRESSES", "0x1234"),
        ("FETCH_INTERVAL_SECONDS", "fast"),
        ("ACTIVITY_CHECK_WINDOW_SECONDS", "0"),
    ],
)
def test_invalid_values_are_config_errors(clean_env, name, value) -> None:
    clean_env.setenv("RPC_URL", "https://polygon-rpc.example.com")
    clean_env.setenv("TARGET_ADDRESSES", ADDR)
    clean_env.setenv(name, value)
    with pytest.raises(AppError) as info:
        load_settings()
    assert info.value.code == "CONFIG_ERROR"


def test_websocket_url_for() -> None:
    assert websocket_url_for("https://node.example.com/v1") == "wss://node.example.com/v1"
    assert websocket_url_for("http://localhost:8545") == "ws://localhost:8545"
