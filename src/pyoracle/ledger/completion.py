"""Pluggable completion hook.

The ledger checks *who* may complete a request; a :class:`CompletionHandler`
decides *what* completing means for a given consumer.  Handlers receive a
:class:`RequestBook` view of the ledger storage.  Writes made through it are
staged and only committed when the handler returns, so a handler that
raises leaves the ledger untouched.
"""

from __future__ import annotations

from typing import Protocol

from pyoracle.exceptions import UnknownOrAlreadyCompletedRequestError
from pyoracle.models.request import OracleRequest


class RequestBook(Protocol):
    def lookup(self, request_id: int) -> OracleRequest | None:
        ...

    def store(self, record: OracleRequest) -> None:
        ...


class CompletionHandler(Protocol):
    """Consumer-defined completion logic."""

    def complete(self, book: RequestBook, request_id: int, result: str) -> OracleRequest:
        ...


class StoreResultHandler:
    """Default handler: mark the request completed and store the result verbatim."""

    def complete(self, book: RequestBook, request_id: int, result: str) -> OracleRequest:
        record = book.lookup(request_id)
        if record is None:
            raise UnknownOrAlreadyCompletedRequestError(
                f"unknown request {request_id}",
                request_id=request_id,
            )
        if record.is_completed:
            raise UnknownOrAlreadyCompletedRequestError(
                f"request {request_id} already completed",
                request_id=request_id,
            )
        updated = record.completed(result)
        book.store(updated)
        return updated
