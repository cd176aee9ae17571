"""Data models for ledger records, events and weather responses."""

from pyoracle.models._base import HexStr, OracleBaseModel, OracleEnum, RequestId, parse_hex
from pyoracle.models.events import NewRequestEvent, RequestCompletedEvent
from pyoracle.models.request import OracleRequest, RequestStatus
from pyoracle.models.weather import CurrentWeather, ForecastResponse, format_temperature

__all__ = [
    "CurrentWeather",
    "ForecastResponse",
    "HexStr",
    "NewRequestEvent",
    "OracleBaseModel",
    "OracleEnum",
    "OracleRequest",
    "RequestCompletedEvent",
    "RequestId",
    "RequestStatus",
    "format_temperature",
    "parse_hex",
]
