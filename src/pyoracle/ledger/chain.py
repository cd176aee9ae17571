"""JSON-RPC gateway to the deployed weather consumer contract."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

import aiohttp
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, Web3Exception

from pyoracle._constants import is_valid_location
from pyoracle.config import OracleConfig
from pyoracle.exceptions import (
    InvalidLocationError,
    LedgerError,
    LedgerSubmissionError,
    OracleError,
    UnauthorizedError,
    UnknownOrAlreadyCompletedRequestError,
)
from pyoracle.ledger._abi import COMPLETE_FUNCTION, CONSUMER_ABI, NEW_REQUEST_EVENT, SUBMIT_FUNCTION
from pyoracle.models._base import parse_hex
from pyoracle.models.events import NewRequestEvent, RequestCompletedEvent
from pyoracle.models.request import OracleRequest

_logger = logging.getLogger(__name__)

_RPC_ERRORS = (Web3Exception, aiohttp.ClientError, TimeoutError)

RECEIPT_TIMEOUT = 120.0


def _map_revert(exc: ContractLogicError, request_id: int | None, caller: str) -> LedgerError:
    """Translate a contract revert into the matching ledger error."""
    message = str(exc)
    lowered = message.lower()
    if "completed" in lowered or "unknown" in lowered:
        return UnknownOrAlreadyCompletedRequestError(message, request_id=request_id)
    if "oracle" in lowered or "unauthori" in lowered:
        return UnauthorizedError(caller, request_id=request_id)
    return LedgerSubmissionError(f"transaction reverted: {message}", request_id=request_id)


class ChainLedger:
    """Ledger gateway backed by the consumer contract.

    Usage::

        async with ChainLedger(config) as ledger:
            async for event in ledger.events():
                ...

    Parameters
    ----------
    config : OracleConfig
        Must carry ``private_key`` and ``consumer_address``.
    w3 : AsyncWeb3 or None
        Pre-built client.  When omitted one is created from
        ``config.rpc_url`` and closed on exit.
    """

    def __init__(self, config: OracleConfig, *, w3: AsyncWeb3 | None = None) -> None:
        self._private_key, self._consumer_address = config.require_chain()
        self._config = config
        self._external_w3 = w3 is not None
        self._w3 = w3
        self._contract: Any = None
        self._address: str | None = None
        self._send_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> ChainLedger:
        if self._w3 is None:
            self._w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self._config.rpc_url))
        self._contract = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(self._consumer_address),
            abi=CONSUMER_ABI,
        )
        self._address = self._w3.eth.account.from_key(self._private_key).address
        _logger.info("Relayer %s watching %s via %s", self._address, self._consumer_address, self._config.rpc_url)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_w3 and self._w3 is not None:
            await self._w3.provider.disconnect()
            self._w3 = None
        self._contract = None

    @property
    def address(self) -> str:
        """Relayer address derived from the private key."""
        if self._address is None:
            raise OracleError("Ledger not initialized. Use 'async with ChainLedger(...) as ledger:'")
        return self._address

    def _require_w3(self) -> AsyncWeb3:
        if self._w3 is None or self._contract is None:
            raise OracleError("Ledger not initialized. Use 'async with ChainLedger(...) as ledger:'")
        return self._w3

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def events(self) -> AsyncIterator[NewRequestEvent]:
        """Poll ``newRequest`` logs forever, yielding each once.

        Starts at ``config.from_block`` or, when unset, at the current
        head.  RPC failures are logged and the same block range is
        retried on the next poll.
        """
        w3 = self._require_w3()
        next_block = self._config.from_block
        if next_block is None:
            next_block = await w3.eth.block_number
        _logger.info("Listening for %s events from block %d", NEW_REQUEST_EVENT, next_block)

        event_type = getattr(self._contract.events, NEW_REQUEST_EVENT)
        while True:
            try:
                head = await w3.eth.block_number
                logs = []
                if head >= next_block:
                    logs = await event_type.get_logs(from_block=next_block, to_block=head)
            except _RPC_ERRORS as exc:
                _logger.warning("Event poll from block %d failed: %s", next_block, exc)
            else:
                for log in logs:
                    yield NewRequestEvent.from_log(log)
                if head >= next_block:
                    next_block = head + 1
            await asyncio.sleep(self._config.poll_interval)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def _transact(self, fn: Any, *, value: int = 0, request_id: int | None = None) -> Any:
        """Build, sign, send and wait for a contract call.  Returns the receipt."""
        w3 = self._require_w3()
        async with self._send_lock:
            try:
                tx_params: dict[str, Any] = {
                    "from": self.address,
                    "nonce": await w3.eth.get_transaction_count(self.address, "pending"),
                    "chainId": await w3.eth.chain_id,
                }
                if value:
                    tx_params["value"] = value
                tx = await fn.build_transaction(tx_params)
                signed = w3.eth.account.sign_transaction(tx, self._private_key)
                tx_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
                receipt = await w3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT)
            except ContractLogicError as exc:
                raise _map_revert(exc, request_id, self.address) from exc
            except _RPC_ERRORS as exc:
                raise LedgerSubmissionError(f"transaction failed: {exc}", request_id=request_id) from exc

        tx_hex = parse_hex(tx_hash)
        if receipt["status"] != 1:
            raise LedgerSubmissionError(
                f"transaction {tx_hex} reverted",
                request_id=request_id,
                transaction_hash=tx_hex,
            )
        return receipt

    async def complete(self, request_id: int, result: str) -> RequestCompletedEvent:
        """Send ``rawCompleteRequest(request_id, result)`` signed by the relayer."""
        self._require_w3()
        fn = getattr(self._contract.functions, COMPLETE_FUNCTION)(request_id, result)
        receipt = await self._transact(fn, request_id=request_id)
        event = RequestCompletedEvent(
            request_id=request_id,
            result=result,
            block_number=receipt["blockNumber"],
            transaction_hash=receipt["transactionHash"],
        )
        _logger.info(
            "Request completed for %s at transaction hash %s%s",
            request_id,
            self._config.explorer_url,
            event.transaction_hash,
        )
        return event

    async def submit(self, lat: int, lon: int, *, value: int | None = None) -> int:
        """Send ``requestTemperature(lat, lon)`` paying *value* wei.  Returns the request id."""
        self._require_w3()
        if not is_valid_location(lat, lon):
            raise InvalidLocationError(lat, lon)
        fee = self._config.fee_wei if value is None else value
        fn = getattr(self._contract.functions, SUBMIT_FUNCTION)(lat, lon)
        receipt = await self._transact(fn, value=fee)
        event_type = getattr(self._contract.events, NEW_REQUEST_EVENT)
        logs = event_type().process_receipt(receipt)
        if not logs:
            raise LedgerSubmissionError("submission receipt carries no newRequest event")
        return NewRequestEvent.from_log(logs[0]).request_id

    async def view(self, index: int) -> OracleRequest:
        """Read the request at insertion position *index*."""
        self._require_w3()
        try:
            request_id, lat, lon, status, result = await self._contract.functions.requests(index).call()
        except ContractLogicError as exc:
            raise IndexError(f"no request at index {index}") from exc
        except _RPC_ERRORS as exc:
            raise LedgerSubmissionError(f"requests({index}) call failed: {exc}") from exc
        return OracleRequest(request_id=request_id, lat=lat, lon=lon, status=status, result=result)
