"""Request ledgers: in-process simulation and on-chain gateway."""

from pyoracle.ledger.base import LedgerGateway
from pyoracle.ledger.chain import ChainLedger
from pyoracle.ledger.completion import CompletionHandler, RequestBook, StoreResultHandler
from pyoracle.ledger.memory import InMemoryLedger, LedgerSubscription, LocalLedgerGateway, derive_request_id

__all__ = [
    "ChainLedger",
    "CompletionHandler",
    "InMemoryLedger",
    "LedgerGateway",
    "LedgerSubscription",
    "LocalLedgerGateway",
    "RequestBook",
    "StoreResultHandler",
    "derive_request_id",
]
