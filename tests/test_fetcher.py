from __future__ import annotations

import asyncio

import pytest
from _support import forecast_body, weather_server
from aiohttp import web

from pyoracle.config import OracleConfig
from pyoracle.exceptions import FetchFailedError
from pyoracle.fetcher import WeatherFetcher


@pytest.mark.asyncio
async def test_fetch_returns_current_temperature_as_string() -> None:
    seen: list[dict[str, str]] = []

    async def handler(request: web.Request) -> web.Response:
        seen.append(dict(request.query))
        return web.json_response({"current_weather": {"temperature": 21.5}})

    async with weather_server(handler) as url:
        async with WeatherFetcher(OracleConfig(weather_url=url)) as fetcher:
            assert await fetcher.fetch(40, -74) == "21.5"

    assert seen == [{"latitude": "40", "longitude": "-74", "current_weather": "true"}]


@pytest.mark.asyncio
async def test_fetch_whole_number_has_no_fraction() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.json_response(forecast_body(21))

    async with weather_server(handler) as url:
        async with WeatherFetcher(OracleConfig(weather_url=url)) as fetcher:
            assert await fetcher.fetch(1, 2) == "21"


@pytest.mark.asyncio
async def test_fetch_negative_temperature() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.json_response(forecast_body(-3.2))

    async with weather_server(handler) as url:
        async with WeatherFetcher(OracleConfig(weather_url=url)) as fetcher:
            assert await fetcher.fetch(-60, 10) == "-3.2"


@pytest.mark.asyncio
async def test_fetch_every_call_hits_provider() -> None:
    calls = 0

    async def handler(request: web.Request) -> web.Response:
        nonlocal calls
        calls += 1
        return web.json_response(forecast_body(calls))

    async with weather_server(handler) as url:
        async with WeatherFetcher(OracleConfig(weather_url=url)) as fetcher:
            assert await fetcher.fetch(1, 2) == "1"
            assert await fetcher.fetch(1, 2) == "2"

    assert calls == 2


@pytest.mark.asyncio
async def test_fetch_error_status_raises_fetch_failed() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=503, text="upstream down")

    async with weather_server(handler) as url:
        async with WeatherFetcher(OracleConfig(weather_url=url)) as fetcher:
            with pytest.raises(FetchFailedError) as exc_info:
                await fetcher.fetch(40, -74)

    assert exc_info.value.status_code == 503
    assert exc_info.value.url == url


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {},
        {"current_weather": {}},
        {"current_weather": {"temperature": None}},
        {"current_weather": {"temperature": "warm"}},
        {"hourly": {"temperature_2m": [1.0]}},
    ],
)
async def test_fetch_missing_or_malformed_field_raises_fetch_failed(body: dict[str, object]) -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.json_response(body)

    async with weather_server(handler) as url:
        async with WeatherFetcher(OracleConfig(weather_url=url)) as fetcher:
            with pytest.raises(FetchFailedError) as exc_info:
                await fetcher.fetch(40, -74)

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_fetch_invalid_json_raises_fetch_failed() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(text="<html>not json</html>", content_type="text/html")

    async with weather_server(handler) as url:
        async with WeatherFetcher(OracleConfig(weather_url=url)) as fetcher:
            with pytest.raises(FetchFailedError):
                await fetcher.fetch(40, -74)


@pytest.mark.asyncio
async def test_fetch_timeout_raises_fetch_failed() -> None:
    async def handler(request: web.Request) -> web.Response:
        await asyncio.sleep(0.5)
        return web.json_response(forecast_body(1))

    async with weather_server(handler) as url:
        async with WeatherFetcher(OracleConfig(weather_url=url, fetch_timeout=0.05)) as fetcher:
            with pytest.raises(FetchFailedError):
                await fetcher.fetch(40, -74)


@pytest.mark.asyncio
async def test_fetch_connection_error_raises_fetch_failed() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.json_response(forecast_body(1))

    async with weather_server(handler) as url:
        dead_url = url
    # Server is closed: connection refused.
    async with WeatherFetcher(OracleConfig(weather_url=dead_url)) as fetcher:
        with pytest.raises(FetchFailedError) as exc_info:
            await fetcher.fetch(40, -74)
    assert exc_info.value.__cause__ is not None


@pytest.mark.asyncio
async def test_fetch_outside_context_manager_fails() -> None:
    fetcher = WeatherFetcher()
    with pytest.raises(FetchFailedError):
        await fetcher.fetch(0, 0)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [200, 502])
async def test_fetch_undecodable_body_raises_fetch_failed(status: int) -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(
            status=status,
            body=b'{"current_weather":{"temperature":\xff}}',
            content_type="application/json",
        )

    async with weather_server(handler) as url:
        async with WeatherFetcher(OracleConfig(weather_url=url)) as fetcher:
            with pytest.raises(FetchFailedError) as exc_info:
                await fetcher.fetch(40, -74)

    assert exc_info.value.status_code == (None if status == 200 else status)
