"""Command line entry point.

Commands:

``run``     watch the consumer contract and answer requests (needs
            ``ORACLE_PRIVATE_KEY`` and ``ORACLE_CONSUMER_ADDRESS``)
``submit``  send a request to the consumer contract
``view``    read a stored request from the consumer contract
``fetch``   query the weather provider once
``demo``    submit, relay and read back requests on an in-memory ledger
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import signal
import sys
from typing import Any

from pyoracle._redact import redact_for_log
from pyoracle.config import OracleConfig
from pyoracle.exceptions import OracleError
from pyoracle.fetcher import WeatherFetcher
from pyoracle.ledger.chain import ChainLedger
from pyoracle.ledger.memory import InMemoryLedger, LocalLedgerGateway
from pyoracle.models.request import OracleRequest
from pyoracle.relay import OracleRelay

_logger = logging.getLogger(__name__)

_DEMO_RELAYER = "0x00000000000000000000000000000000000000aa"
_DEMO_CONSUMER = "0x00000000000000000000000000000000000000bb"


def _request_dict(request: OracleRequest) -> dict[str, Any]:
    return {
        "request_id": str(request.request_id),
        "lat": request.lat,
        "lon": request.lon,
        "status": request.status.name,
        "result": request.result,
    }


async def _run(config: OracleConfig) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    async with ChainLedger(config) as ledger, WeatherFetcher(config) as fetcher:
        relay = OracleRelay(ledger, fetcher, config)
        await relay.run(stop)


async def _submit(config: OracleConfig, lat: int, lon: int, value: int | None) -> None:
    async with ChainLedger(config) as ledger:
        request_id = await ledger.submit(lat, lon, value=value)
    print(request_id)


async def _view(config: OracleConfig, index: int) -> None:
    async with ChainLedger(config) as ledger:
        request = await ledger.view(index)
    print(json.dumps(_request_dict(request), indent=2))


async def _fetch(config: OracleConfig, lat: int, lon: int) -> None:
    async with WeatherFetcher(config) as fetcher:
        print(await fetcher.fetch(lat, lon))


async def demo(config: OracleConfig, locations: list[tuple[int, int]]) -> list[OracleRequest]:
    """Submit *locations* to a fresh in-memory ledger and relay every request."""
    ledger = InMemoryLedger(_DEMO_RELAYER, fee=config.fee_wei)
    gateway = LocalLedgerGateway(ledger, from_block=0)
    for lat, lon in locations:
        ledger.submit(lat, lon, caller=_DEMO_CONSUMER, value=config.fee_wei)

    async with WeatherFetcher(config) as fetcher:
        relay = OracleRelay(gateway, fetcher, config)
        runner = asyncio.create_task(relay.run())
        while relay.processed < len(locations) and not runner.done():
            await asyncio.sleep(0.05)
        ledger.close()
        await runner

    return [ledger.view(i) for i in range(ledger.request_count)]


def _location(value: str) -> tuple[int, int]:
    try:
        lat, lon = (int(part) for part in value.split(",", 1))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected LAT,LON integers, got {value!r}") from exc
    return lat, lon


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pyoracle", description="Single-relayer weather oracle.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Relay requests from the consumer contract")
    run.add_argument("--from-block", type=int, help="First block to scan (default: chain head)")
    run.add_argument("--max-concurrency", type=int, help="Requests processed concurrently")

    submit = sub.add_parser("submit", help="Send a request to the consumer contract")
    submit.add_argument("lat", type=int)
    submit.add_argument("lon", type=int)
    submit.add_argument("--value", type=int, help="Wei to attach (default: ORACLE_FEE_WEI)")

    view = sub.add_parser("view", help="Read a request by insertion index")
    view.add_argument("index", type=int)

    fetch = sub.add_parser("fetch", help="Query the weather provider once")
    fetch.add_argument("lat", type=int)
    fetch.add_argument("lon", type=int)

    demo_cmd = sub.add_parser("demo", help="Round trip on an in-memory ledger")
    demo_cmd.add_argument(
        "locations",
        nargs="*",
        type=_location,
        default=[(40, -74)],
        metavar="LAT,LON",
        help="Locations to request (default: 40,-74)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    overrides: dict[str, Any] = {}
    if getattr(args, "from_block", None) is not None:
        overrides["from_block"] = args.from_block
    if getattr(args, "max_concurrency", None) is not None:
        overrides["max_concurrency"] = args.max_concurrency

    try:
        config = OracleConfig.from_env(**overrides)
        _logger.debug("Config: %s", redact_for_log(config))

        if args.command == "run":
            asyncio.run(_run(config))
        elif args.command == "submit":
            asyncio.run(_submit(config, args.lat, args.lon, args.value))
        elif args.command == "view":
            asyncio.run(_view(config, args.index))
        elif args.command == "fetch":
            asyncio.run(_fetch(config, args.lat, args.lon))
        elif args.command == "demo":
            requests = asyncio.run(demo(config, args.locations))
            print(json.dumps([_request_dict(r) for r in requests], indent=2))
    except (OracleError, IndexError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0
