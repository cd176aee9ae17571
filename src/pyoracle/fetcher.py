"""External weather data fetcher."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp
from pydantic import ValidationError

from pyoracle._constants import FETCH_TIMEOUT, USER_AGENT, WEATHER_URL
from pyoracle.config import OracleConfig
from pyoracle.exceptions import FetchFailedError
from pyoracle.models.weather import ForecastResponse, format_temperature

_logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Structural fetcher interface used by the relay.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`WeatherFetcher`) concrete.
    """

    async def fetch(self, lat: int, lon: int) -> str:
        ...


class WeatherFetcher:
    """Reads the current temperature for a coordinate pair.

    Usage::

        async with WeatherFetcher(config) as fetcher:
            temperature = await fetcher.fetch(40, -74)

    No caching: every call issues a fresh GET.
    """

    def __init__(
        self,
        config: OracleConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._url = config.weather_url if config is not None else WEATHER_URL
        self._timeout = aiohttp.ClientTimeout(total=config.fetch_timeout if config is not None else FETCH_TIMEOUT)
        self._external_session = session is not None
        self._http = session

    async def __aenter__(self) -> WeatherFetcher:
        if self._http is None:
            self._http = aiohttp.ClientSession(headers={"user-agent": USER_AGENT})
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http is not None:
            await self._http.close()
            self._http = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http is None:
            raise FetchFailedError("Fetcher not initialized. Use 'async with WeatherFetcher(...) as fetcher:'")
        return self._http

    async def fetch(self, lat: int, lon: int) -> str:
        """Return the current temperature at ``(lat, lon)`` as a string.

        Raises
        ------
        FetchFailedError
            On network error, timeout, non-2xx status, invalid JSON or a
            missing/non-numeric ``current_weather.temperature``.
        """
        http = self._require_session()
        params = {"latitude": str(lat), "longitude": str(lon), "current_weather": "true"}

        _logger.debug("GET %s lat=%s lon=%s", self._url, lat, lon)

        try:
            async with http.get(self._url, params=params, timeout=self._timeout) as resp:
                raw = await resp.read()
                text = raw.decode("utf-8", errors="replace")
                if not 200 <= resp.status < 300:
                    raise FetchFailedError(
                        f"HTTP {resp.status} from weather provider: {text[:200]}",
                        status_code=resp.status,
                        url=self._url,
                    )
        except FetchFailedError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise FetchFailedError(
                f"Weather request failed: {exc!r}",
                url=self._url,
            ) from exc

        try:
            body = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise FetchFailedError(
                f"Invalid JSON from weather provider: {text[:200]}",
                url=self._url,
            ) from exc

        try:
            forecast = ForecastResponse.model_validate(body)
        except ValidationError as exc:
            raise FetchFailedError(
                f"Weather response missing current_weather.temperature: {text[:200]}",
                url=self._url,
            ) from exc

        return format_temperature(forecast.current_weather.temperature)
