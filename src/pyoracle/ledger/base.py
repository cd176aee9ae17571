"""Relay-facing ledger interface.

The relay only needs two things from a ledger: a stream of new requests
and a way to answer them.  Having a protocol here lets the relay run
unchanged against the in-memory ledger, the chain gateway or test doubles.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol

from pyoracle.models.events import NewRequestEvent, RequestCompletedEvent


class LedgerGateway(Protocol):
    """Structural interface the relay depends on."""

    def events(self) -> AsyncIterator[NewRequestEvent]:
        ...

    async def complete(self, request_id: int, result: str) -> RequestCompletedEvent:
        ...
