"""Relay configuration for pyoracle."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pyoracle._constants import (
    EXPLORER_TX_URL,
    FETCH_TIMEOUT,
    MAX_ATTEMPTS,
    POLL_INTERVAL,
    RETRY_DELAY,
    RPC_URL,
    SENTINEL_RESULT,
    WEATHER_URL,
)
from pyoracle.exceptions import OracleConfigError

N = TypeVar("N", int, float)


def _env_number(env: Mapping[str, str], key: str, cast: Callable[[str], N]) -> N | None:
    value = env.get(key)
    if value is None or not value.strip():
        return None
    try:
        return cast(value.strip())
    except ValueError as exc:
        raise OracleConfigError(f"{key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class OracleConfig:
    """Relay configuration.

    Parameters
    ----------
    private_key : str or None
        Hex private key of the relayer account.  Signs every completion
        transaction.  Only needed when talking to a real chain.
    consumer_address : str or None
        Address of the deployed consumer contract.
    rpc_url : str
        JSON-RPC endpoint.  Defaults to the Celo Alfajores testnet.
    explorer_url : str
        Prefix used to log a clickable link for each completion transaction.
    fee_wei : int
        Fee attached to manual ``submit`` calls made from the CLI.
    weather_url : str
        Forecast endpoint queried with ``latitude``/``longitude``.
    fetch_timeout : float
        Total seconds allowed for one weather HTTP call.
    max_attempts : int
        Fetch attempts per request before falling back to the sentinel.
    retry_delay : float
        Fixed pause between fetch attempts (no backoff).
    fallback_value : str
        Result submitted when every attempt failed.
    poll_interval : float
        Seconds between event log polls against the chain.
    max_concurrency : int
        Requests processed concurrently.  ``1`` processes events strictly
        one after another.
    from_block : int or None
        First block to scan for events.  ``None`` starts at the chain head.
    """

    private_key: str | None = None
    consumer_address: str | None = None
    rpc_url: str = RPC_URL
    explorer_url: str = EXPLORER_TX_URL
    fee_wei: int = 0
    weather_url: str = WEATHER_URL
    fetch_timeout: float = FETCH_TIMEOUT
    max_attempts: int = MAX_ATTEMPTS
    retry_delay: float = RETRY_DELAY
    fallback_value: str = SENTINEL_RESULT
    poll_interval: float = POLL_INTERVAL
    max_concurrency: int = 1
    from_block: int | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise OracleConfigError("max_attempts must be >= 1")
        if self.max_concurrency < 1:
            raise OracleConfigError("max_concurrency must be >= 1")
        if self.fee_wei < 0:
            raise OracleConfigError("fee_wei must be >= 0")
        if self.fetch_timeout <= 0:
            raise OracleConfigError("fetch_timeout must be > 0")
        if self.retry_delay < 0 or self.poll_interval < 0:
            raise OracleConfigError("delays must be >= 0")

    def require_chain(self) -> tuple[str, str]:
        """Return ``(private_key, consumer_address)`` or raise if either is unset."""
        if not self.private_key:
            raise OracleConfigError("ORACLE_PRIVATE_KEY is not set")
        if not self.consumer_address:
            raise OracleConfigError("ORACLE_CONSUMER_ADDRESS is not set")
        return self.private_key, self.consumer_address

    @classmethod
    def from_env(cls, **overrides: Any) -> OracleConfig:
        """Create configuration from environment variables.

        Reads ``ORACLE_*`` variables.  The legacy names ``PRIVAKE_KEY`` and
        ``CONSUMER_ADDRESS`` are accepted as fallbacks.  Explicit keyword
        arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "ORACLE_RPC_URL": "rpc_url",
            "ORACLE_EXPLORER_URL": "explorer_url",
            "ORACLE_WEATHER_URL": "weather_url",
            "ORACLE_FALLBACK_VALUE": "fallback_value",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        private_key = env.get("ORACLE_PRIVATE_KEY") or env.get("PRIVAKE_KEY")
        if private_key:
            config_kwargs["private_key"] = private_key.strip()
        consumer = env.get("ORACLE_CONSUMER_ADDRESS") or env.get("CONSUMER_ADDRESS")
        if consumer:
            config_kwargs["consumer_address"] = consumer.strip()

        _ENV_NUMERIC_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "ORACLE_FEE_WEI": ("fee_wei", int),
            "ORACLE_FETCH_TIMEOUT": ("fetch_timeout", float),
            "ORACLE_MAX_ATTEMPTS": ("max_attempts", int),
            "ORACLE_RETRY_DELAY": ("retry_delay", float),
            "ORACLE_POLL_INTERVAL": ("poll_interval", float),
            "ORACLE_MAX_CONCURRENCY": ("max_concurrency", int),
            "ORACLE_FROM_BLOCK": ("from_block", int),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            if field_name in overrides:
                continue
            number = _env_number(env, env_key, cast)
            if number is not None:
                config_kwargs[field_name] = number

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
