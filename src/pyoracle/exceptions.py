"""Custom exception hierarchy for pyoracle."""

from __future__ import annotations


class OracleError(Exception):
    """Base exception for all pyoracle errors."""


class OracleConfigError(OracleError):
    """Invalid or missing configuration."""


class LedgerError(OracleError):
    """A ledger call was rejected.

    Ledger calls are atomic: when one of these is raised the ledger state
    is exactly what it was before the call.
    """

    def __init__(self, message: str, *, request_id: int | None = None) -> None:
        self.request_id = request_id
        super().__init__(message)


class InvalidLocationError(LedgerError):
    """Latitude or longitude outside the geographic envelope."""

    def __init__(self, lat: int, lon: int) -> None:
        self.lat = lat
        self.lon = lon
        super().__init__(f"invalid location lat={lat} lon={lon}")


class FeeTransferFailedError(LedgerError):
    """The request fee was not paid or could not be forwarded to the relayer."""


class UnauthorizedError(LedgerError):
    """Completion attempted by an identity other than the relayer."""

    def __init__(self, caller: str, *, request_id: int | None = None) -> None:
        self.caller = caller
        super().__init__(f"{caller} is not the relayer", request_id=request_id)


class UnknownOrAlreadyCompletedRequestError(LedgerError):
    """Completion of a request id that is absent or already completed.

    Safe to treat as a no-op by the relay: the ledger already holds an
    answer (or never asked the question).
    """


class LedgerSubmissionError(LedgerError):
    """A transaction to the on-chain ledger failed or was reverted."""

    def __init__(
        self,
        message: str,
        *,
        request_id: int | None = None,
        transaction_hash: str | None = None,
    ) -> None:
        self.transaction_hash = transaction_hash
        super().__init__(message, request_id=request_id)


class FetchFailedError(OracleError):
    """External weather lookup failed (network, non-2xx, malformed body).

    All failure causes collapse into this one type; ``status_code`` is
    informational only.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)
