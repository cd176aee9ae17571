from __future__ import annotations

import pytest

from pyoracle._constants import RPC_URL, WEATHER_URL
from pyoracle.config import OracleConfig
from pyoracle.exceptions import OracleConfigError

_ENV_KEYS = (
    "ORACLE_PRIVATE_KEY",
    "PRIVAKE_KEY",
    "ORACLE_CONSUMER_ADDRESS",
    "CONSUMER_ADDRESS",
    "ORACLE_RPC_URL",
    "ORACLE_EXPLORER_URL",
    "ORACLE_FEE_WEI",
    "ORACLE_WEATHER_URL",
    "ORACLE_FETCH_TIMEOUT",
    "ORACLE_MAX_ATTEMPTS",
    "ORACLE_RETRY_DELAY",
    "ORACLE_FALLBACK_VALUE",
    "ORACLE_POLL_INTERVAL",
    "ORACLE_MAX_CONCURRENCY",
    "ORACLE_FROM_BLOCK",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = OracleConfig.from_env()

    assert config.private_key is None
    assert config.rpc_url == RPC_URL
    assert config.weather_url == WEATHER_URL
    assert config.max_attempts == 3
    assert config.retry_delay == 1.0
    assert config.fetch_timeout == 10.0
    assert config.fallback_value == "0"
    assert config.max_concurrency == 1
    assert config.from_block is None


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORACLE_PRIVATE_KEY", " 0xabc \n")
    monkeypatch.setenv("ORACLE_CONSUMER_ADDRESS", "0x4444444444444444444444444444444444444444")
    monkeypatch.setenv("ORACLE_RPC_URL", "http://localhost:8545")
    monkeypatch.setenv("ORACLE_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("ORACLE_RETRY_DELAY", "0.25")
    monkeypatch.setenv("ORACLE_FROM_BLOCK", "1200")
    monkeypatch.setenv("ORACLE_FALLBACK_VALUE", "NaN")

    config = OracleConfig.from_env()

    assert config.private_key == "0xabc"
    assert config.require_chain() == ("0xabc", "0x4444444444444444444444444444444444444444")
    assert config.rpc_url == "http://localhost:8545"
    assert config.max_attempts == 5
    assert config.retry_delay == 0.25
    assert config.from_block == 1200
    assert config.fallback_value == "NaN"


def test_legacy_variable_names(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRIVAKE_KEY", "0xlegacy")
    monkeypatch.setenv("CONSUMER_ADDRESS", "0x5555555555555555555555555555555555555555")

    config = OracleConfig.from_env()

    assert config.private_key == "0xlegacy"
    assert config.consumer_address == "0x5555555555555555555555555555555555555555"


def test_new_names_win_over_legacy(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRIVAKE_KEY", "0xlegacy")
    monkeypatch.setenv("ORACLE_PRIVATE_KEY", "0xcurrent")

    assert OracleConfig.from_env().private_key == "0xcurrent"


def test_overrides_beat_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORACLE_MAX_CONCURRENCY", "not-a-number")
    monkeypatch.setenv("ORACLE_WEATHER_URL", "http://env.invalid/")

    config = OracleConfig.from_env(max_concurrency=4, weather_url="http://override.invalid/")

    assert config.max_concurrency == 4
    assert config.weather_url == "http://override.invalid/"


def test_blank_numeric_values_are_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORACLE_MAX_ATTEMPTS", "  ")

    assert OracleConfig.from_env().max_attempts == 3


@pytest.mark.parametrize(("key", "value"), [("ORACLE_MAX_ATTEMPTS", "three"), ("ORACLE_RETRY_DELAY", "1s")])
def test_bad_numbers_raise_config_error(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv(key, value)

    with pytest.raises(OracleConfigError, match=key):
        OracleConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"max_concurrency": 0},
        {"fee_wei": -1},
        {"fetch_timeout": 0},
        {"retry_delay": -0.1},
        {"poll_interval": -1},
    ],
)
def test_validation(kwargs: dict[str, float]) -> None:
    with pytest.raises(OracleConfigError):
        OracleConfig(**kwargs)  # type: ignore[arg-type]


def test_require_chain_names_missing_setting() -> None:
    with pytest.raises(OracleConfigError, match="ORACLE_PRIVATE_KEY"):
        OracleConfig().require_chain()
    with pytest.raises(OracleConfigError, match="ORACLE_CONSUMER_ADDRESS"):
        OracleConfig(private_key="0xabc").require_chain()
