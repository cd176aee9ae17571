"""Ledger events observed by the relay.

Both the in-memory ledger and the chain gateway produce these models, so
the relay never sees web3 types.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, ClassVar

from pydantic import Field

from pyoracle.models._base import HexStr, OracleBaseModel, RequestId


class NewRequestEvent(OracleBaseModel):
    """``newRequest(requestId, lat, log)`` emitted by ``submit``."""

    request_id: RequestId
    lat: int
    lon: int
    block_number: int | None = None
    transaction_hash: HexStr = None
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    raw: dict[str, Any] = Field(default_factory=dict)

    _KEY_ALIASES: ClassVar[dict[str, str]] = {"log": "lon"}

    @classmethod
    def from_log(cls, log: Any) -> NewRequestEvent:
        """Build an event from a decoded web3 log (``args`` + receipt metadata)."""
        args = dict(log["args"])
        return cls.model_validate(
            {
                **args,
                "blockNumber": log.get("blockNumber"),
                "transactionHash": log.get("transactionHash"),
                "raw": args,
            }
        )


class RequestCompletedEvent(OracleBaseModel):
    """Emitted once per request when the relayer's answer is accepted."""

    request_id: RequestId
    result: str
    block_number: int | None = None
    transaction_hash: HexStr = None
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
