"""pyoracle - single-relayer weather oracle for smart contracts."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyoracle")
except PackageNotFoundError:
    __version__ = "0+local"
from pyoracle.config import OracleConfig
from pyoracle.exceptions import (
    FeeTransferFailedError,
    FetchFailedError,
    InvalidLocationError,
    LedgerError,
    LedgerSubmissionError,
    OracleConfigError,
    OracleError,
    UnauthorizedError,
    UnknownOrAlreadyCompletedRequestError,
)
from pyoracle.fetcher import WeatherFetcher
from pyoracle.ledger import (
    ChainLedger,
    CompletionHandler,
    InMemoryLedger,
    LedgerGateway,
    LocalLedgerGateway,
    StoreResultHandler,
)
from pyoracle.models import (
    NewRequestEvent,
    OracleRequest,
    RequestCompletedEvent,
    RequestStatus,
)
from pyoracle.relay import OracleRelay, RelayOutcome

__all__ = [
    "__version__",
    "ChainLedger",
    "CompletionHandler",
    "FeeTransferFailedError",
    "FetchFailedError",
    "InMemoryLedger",
    "InvalidLocationError",
    "LedgerError",
    "LedgerGateway",
    "LedgerSubmissionError",
    "LocalLedgerGateway",
    "NewRequestEvent",
    "OracleConfig",
    "OracleConfigError",
    "OracleError",
    "OracleRelay",
    "OracleRequest",
    "RelayOutcome",
    "RequestCompletedEvent",
    "RequestStatus",
    "StoreResultHandler",
    "UnauthorizedError",
    "UnknownOrAlreadyCompletedRequestError",
    "WeatherFetcher",
]
