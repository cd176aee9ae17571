from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable

from aiohttp import web
from aiohttp.test_utils import TestServer

RELAYER = "0x1111111111111111111111111111111111111111"
CONSUMER = "0x2222222222222222222222222222222222222222"
STRANGER = "0x3333333333333333333333333333333333333333"

FIXED_TS = 1_700_000_000

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@contextlib.asynccontextmanager
async def weather_server(handler: Handler) -> AsyncIterator[str]:
    """Serve *handler* at ``/v1/forecast`` and yield the full URL."""
    app = web.Application()
    app.router.add_get("/v1/forecast", handler)
    server = TestServer(app)
    await server.start_server()
    try:
        yield str(server.make_url("/v1/forecast"))
    finally:
        await server.close()


def forecast_body(temperature: object) -> dict[str, object]:
    return {
        "latitude": 40.0,
        "longitude": -74.0,
        "current_weather": {
            "temperature": temperature,
            "windspeed": 10.3,
            "winddirection": 240,
            "weathercode": 3,
            "time": "2026-10-19T12:00",
        },
    }
