"""Ledger request record."""

from __future__ import annotations

from typing import ClassVar

from pydantic import Field

from pyoracle.models._base import OracleBaseModel, OracleEnum, RequestId


class RequestStatus(OracleEnum):
    """Lifecycle of a request.  ``COMPLETED`` is terminal."""

    UNKNOWN = -1
    PENDING = 0
    COMPLETED = 1


class OracleRequest(OracleBaseModel):
    """A single weather request as stored by the ledger.

    Records are immutable snapshots; the ledger replaces the stored
    snapshot when the request completes.
    """

    request_id: RequestId
    lat: int
    lon: int
    status: RequestStatus = RequestStatus.PENDING
    result: str = ""
    requester: str | None = Field(default=None, description="Address that paid for the request")

    _KEY_ALIASES: ClassVar[dict[str, str]] = {"log": "lon"}

    @property
    def is_completed(self) -> bool:
        return self.status == RequestStatus.COMPLETED

    def completed(self, result: str) -> OracleRequest:
        """Return a copy transitioned to ``COMPLETED`` with *result* stored."""
        return self.model_copy(update={"status": RequestStatus.COMPLETED, "result": result})
