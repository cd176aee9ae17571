"""In-process request ledger with the consumer contract's semantics.

Used for local simulation, demos and tests.  Every public call behaves
like a transaction: all checks run before any state is touched, so a
rejected call changes nothing and emits nothing.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable

from web3 import Web3

from pyoracle._constants import is_valid_location
from pyoracle.exceptions import (
    FeeTransferFailedError,
    InvalidLocationError,
    UnauthorizedError,
)
from pyoracle.ledger.completion import CompletionHandler, StoreResultHandler
from pyoracle.models.events import NewRequestEvent, RequestCompletedEvent
from pyoracle.models.request import OracleRequest

_logger = logging.getLogger(__name__)

FeeTransfer = Callable[[str, str, int], None]
"""``(payer, payee, amount)``; raising aborts the submission."""


def derive_request_id(timestamp: int, caller: str, nonce: int) -> int:
    """``uint256(keccak256(abi.encodePacked(timestamp, caller, nonce)))``."""
    digest = Web3.solidity_keccak(["uint256", "address", "uint256"], [timestamp, caller, nonce])
    return int.from_bytes(digest, "big")


class _StagedBook:
    """Write buffer handed to completion handlers."""

    def __init__(self, ledger: InMemoryLedger) -> None:
        self._ledger = ledger
        self.staged: dict[int, OracleRequest] = {}

    def lookup(self, request_id: int) -> OracleRequest | None:
        if request_id in self.staged:
            return self.staged[request_id]
        return self._ledger.lookup(request_id)

    def store(self, record: OracleRequest) -> None:
        if self._ledger.lookup(record.request_id) is None:
            raise KeyError(f"request {record.request_id} does not exist")
        self.staged[record.request_id] = record


class LedgerSubscription:
    """Async iterator over ``NewRequest`` events.

    Registered with the ledger on construction, so events recorded after
    :meth:`InMemoryLedger.subscribe` returns are never missed.
    """

    def __init__(self, ledger: InMemoryLedger, backlog: list[NewRequestEvent]) -> None:
        self._ledger = ledger
        self._queue: asyncio.Queue[NewRequestEvent | None] = asyncio.Queue()
        for event in backlog:
            self._queue.put_nowait(event)
        self._closed = False

    def push(self, event: NewRequestEvent | None) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def close(self) -> None:
        self.push(None)
        self._closed = True
        self._ledger._unsubscribe(self)

    async def aclose(self) -> None:
        self.close()

    def __aiter__(self) -> AsyncIterator[NewRequestEvent]:
        return self

    async def __anext__(self) -> NewRequestEvent:
        event = await self._queue.get()
        if event is None:
            self._closed = True
            self._ledger._unsubscribe(self)
            raise StopAsyncIteration
        return event


class InMemoryLedger:
    """Request ledger.

    Parameters
    ----------
    relayer : str
        Address allowed to complete requests.
    fee : int
        Minimum value (wei) a submission must carry.
    completion_handler : CompletionHandler or None
        Consumer-defined completion logic.  Defaults to
        :class:`StoreResultHandler`.
    fee_transfer : callable or None
        Moves the fee from the caller to the relayer.  Defaults to
        crediting :meth:`balance_of` the relayer.
    clock : callable
        Returns the current block timestamp in seconds.
    """

    def __init__(
        self,
        relayer: str,
        *,
        fee: int = 0,
        completion_handler: CompletionHandler | None = None,
        fee_transfer: FeeTransfer | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if fee < 0:
            raise ValueError("fee must be >= 0")
        self._relayer = Web3.to_checksum_address(relayer)
        self._fee = fee
        self._handler: CompletionHandler = completion_handler or StoreResultHandler()
        self._fee_transfer = fee_transfer or self._credit_balance
        self._clock = clock
        self._nonce = 0
        self._block_number = 0
        self._requests: list[OracleRequest] = []
        self._index_by_id: dict[int, int] = {}
        self._balances: dict[str, int] = {}
        self._new_requests: list[NewRequestEvent] = []
        self._completions: list[RequestCompletedEvent] = []
        self._subscribers: list[LedgerSubscription] = []

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def relayer(self) -> str:
        return self._relayer

    @property
    def fee(self) -> int:
        return self._fee

    @property
    def nonce(self) -> int:
        return self._nonce

    @property
    def block_number(self) -> int:
        return self._block_number

    @property
    def request_count(self) -> int:
        return len(self._requests)

    @property
    def new_requests(self) -> list[NewRequestEvent]:
        return list(self._new_requests)

    @property
    def completions(self) -> list[RequestCompletedEvent]:
        return list(self._completions)

    def balance_of(self, address: str) -> int:
        return self._balances.get(Web3.to_checksum_address(address), 0)

    def view(self, index: int) -> OracleRequest:
        """Return the request at insertion position *index*."""
        if index < 0 or index >= len(self._requests):
            raise IndexError(f"no request at index {index}")
        return self._requests[index]

    def lookup(self, request_id: int) -> OracleRequest | None:
        index = self._index_by_id.get(request_id)
        return None if index is None else self._requests[index]

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def submit(self, lat: int, lon: int, *, caller: str, value: int = 0) -> int:
        """Pay the fee and record a new pending request.

        Returns the new request id.

        Raises
        ------
        FeeTransferFailedError
            *value* is below the fee or the transfer to the relayer failed.
        InvalidLocationError
            *lat*/*lon* outside ``[-90, 90]`` / ``[-180, 180]``.
        """
        payer = Web3.to_checksum_address(caller)
        if value < self._fee:
            raise FeeTransferFailedError(f"fee of {self._fee} wei required, got {value}")
        if not is_valid_location(lat, lon):
            raise InvalidLocationError(lat, lon)

        if value:
            try:
                self._fee_transfer(payer, self._relayer, value)
            except Exception as exc:
                raise FeeTransferFailedError(f"fee transfer of {value} wei to relayer failed: {exc}") from exc

        timestamp = int(self._clock())
        request_id = derive_request_id(timestamp, payer, self._nonce)
        self._block_number += 1
        record = OracleRequest(request_id=request_id, lat=lat, lon=lon, requester=payer)
        self._index_by_id[request_id] = len(self._requests)
        self._requests.append(record)

        event = NewRequestEvent(
            request_id=request_id,
            lat=lat,
            lon=lon,
            block_number=self._block_number,
            raw={"requestId": request_id, "lat": lat, "log": lon},
        )
        self._new_requests.append(event)
        self._nonce += 1

        _logger.debug("New request %s lat=%s lon=%s nonce=%s", request_id, lat, lon, self._nonce)
        for subscriber in list(self._subscribers):
            subscriber.push(event)
        return request_id

    def complete(self, request_id: int, result: str, *, caller: str) -> RequestCompletedEvent:
        """Answer a pending request.

        Raises
        ------
        UnauthorizedError
            *caller* is not the relayer.
        UnknownOrAlreadyCompletedRequestError
            Raised by the completion handler for absent or completed ids.
        """
        sender = Web3.to_checksum_address(caller)
        if sender != self._relayer:
            raise UnauthorizedError(sender, request_id=request_id)

        book = _StagedBook(self)
        self._handler.complete(book, request_id, result)

        for record in book.staged.values():
            self._requests[self._index_by_id[record.request_id]] = record
        self._block_number += 1
        event = RequestCompletedEvent(
            request_id=request_id,
            result=result,
            block_number=self._block_number,
        )
        self._completions.append(event)
        _logger.debug("Request %s completed with %r", request_id, result)
        return event

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, *, from_block: int | None = None) -> LedgerSubscription:
        """Stream ``NewRequest`` events.

        With *from_block* set, events already recorded at or after that
        block are replayed first.
        """
        backlog: list[NewRequestEvent] = []
        if from_block is not None:
            backlog = [e for e in self._new_requests if (e.block_number or 0) >= from_block]
        subscription = LedgerSubscription(self, backlog)
        self._subscribers.append(subscription)
        return subscription

    def close(self) -> None:
        """End every open subscription."""
        for subscriber in list(self._subscribers):
            subscriber.close()

    def _unsubscribe(self, subscription: LedgerSubscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)

    def _credit_balance(self, payer: str, payee: str, amount: int) -> None:
        self._balances[payee] = self._balances.get(payee, 0) + amount

    def __repr__(self) -> str:
        return f"InMemoryLedger(relayer={self._relayer!r}, requests={len(self._requests)}, nonce={self._nonce})"


class LocalLedgerGateway:
    """Relay-side view of an :class:`InMemoryLedger`, acting as the relayer."""

    def __init__(
        self,
        ledger: InMemoryLedger,
        *,
        relayer: str | None = None,
        from_block: int | None = None,
    ) -> None:
        self._ledger = ledger
        self._relayer = relayer or ledger.relayer
        self._from_block = from_block

    @property
    def ledger(self) -> InMemoryLedger:
        return self._ledger

    def events(self) -> AsyncIterator[NewRequestEvent]:
        return self._ledger.subscribe(from_block=self._from_block)

    async def complete(self, request_id: int, result: str) -> RequestCompletedEvent:
        return self._ledger.complete(request_id, result, caller=self._relayer)
