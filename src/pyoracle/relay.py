"""Relay loop: ledger events in, weather lookups, completions out."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass

from pyoracle.config import OracleConfig
from pyoracle.exceptions import FetchFailedError, LedgerError, UnknownOrAlreadyCompletedRequestError
from pyoracle.fetcher import Fetcher
from pyoracle.ledger.base import LedgerGateway
from pyoracle.models.events import NewRequestEvent, RequestCompletedEvent

_logger = logging.getLogger(__name__)

OUTCOME_HISTORY = 100


@dataclass(frozen=True, slots=True)
class RelayOutcome:
    """What the relay did for one request."""

    request_id: int
    value: str
    attempts: int
    used_fallback: bool
    completion: RequestCompletedEvent | None = None
    error: LedgerError | None = None

    @property
    def accepted(self) -> bool:
        """Whether the ledger accepted the completion."""
        return self.completion is not None


class OracleRelay:
    """Bridges ``NewRequest`` events to the fetcher and back to the ledger.

    The relay is stateless: everything it needs arrives in the event.
    Only the last ``history`` outcomes are kept, for inspection.

    With ``config.max_concurrency == 1`` each event is handled completely,
    retries included, before the next one is read.  Larger values run one
    task per event, bounded by a semaphore; the ledger rejects duplicate
    completions so overlapping tasks are safe.
    """

    def __init__(
        self,
        ledger: LedgerGateway,
        fetcher: Fetcher,
        config: OracleConfig | None = None,
        *,
        history: int = OUTCOME_HISTORY,
    ) -> None:
        self._ledger = ledger
        self._fetcher = fetcher
        self._config = config or OracleConfig()
        self._semaphore = asyncio.Semaphore(self._config.max_concurrency)
        self._tasks: set[asyncio.Task[RelayOutcome]] = set()
        self._outcomes: deque[RelayOutcome] = deque(maxlen=history)
        self._processed = 0

    @property
    def outcomes(self) -> list[RelayOutcome]:
        """Most recent outcomes, oldest first."""
        return list(self._outcomes)

    @property
    def processed(self) -> int:
        """Number of requests handled since construction, crashed ones included."""
        return self._processed

    async def fetch_with_retry(self, lat: int, lon: int) -> tuple[str, int, bool]:
        """Fetch with a fixed attempt budget.

        Returns ``(value, attempts, used_fallback)``.  When every attempt
        fails the configured fallback value (``"0"``) is returned.
        """
        max_attempts = self._config.max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                value = await self._fetcher.fetch(lat, lon)
            except FetchFailedError as exc:
                _logger.warning("Fetch lat=%s lon=%s failed (attempt %d/%d): %s", lat, lon, attempt, max_attempts, exc)
                if attempt < max_attempts and self._config.retry_delay > 0:
                    await asyncio.sleep(self._config.retry_delay)
                continue
            return value, attempt, False

        _logger.error("Failed to get data from API for lat=%s lon=%s, submitting fallback", lat, lon)
        return self._config.fallback_value, max_attempts, True

    async def process(self, event: NewRequestEvent) -> RelayOutcome:
        """Answer a single request.

        Completion failures are logged and reported in the outcome; they
        are not re-submitted.
        """
        _logger.info("New request with id %s for lat %s lon %s", event.request_id, event.lat, event.lon)
        value, attempts, used_fallback = await self.fetch_with_retry(event.lat, event.lon)

        completion: RequestCompletedEvent | None = None
        error: LedgerError | None = None
        _logger.debug("Sending response %r for request %s", value, event.request_id)
        try:
            completion = await self._ledger.complete(event.request_id, value)
        except UnknownOrAlreadyCompletedRequestError as exc:
            _logger.info("Request %s already answered: %s", event.request_id, exc)
            error = exc
        except LedgerError as exc:
            _logger.error("Completion of request %s failed: %s", event.request_id, exc)
            error = exc

        outcome = RelayOutcome(
            request_id=event.request_id,
            value=value,
            attempts=attempts,
            used_fallback=used_fallback,
            completion=completion,
            error=error,
        )
        self._outcomes.append(outcome)
        self._processed += 1
        return outcome

    async def _process_bounded(self, event: NewRequestEvent) -> RelayOutcome:
        async with self._semaphore:
            return await self.process(event)

    def _on_task_done(self, task: asyncio.Task[RelayOutcome]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Relay task crashed", exc_info=exc)
            self._processed += 1

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Consume ledger events until *stop* is set or the stream ends.

        In-flight requests are drained before returning.
        """
        _logger.info("Oracle relay started (max_concurrency=%d)", self._config.max_concurrency)
        events = self._ledger.events()
        stop_waiter = asyncio.ensure_future(stop.wait()) if stop is not None else None
        next_event: asyncio.Future[NewRequestEvent] | None = None
        try:
            while True:
                next_event = asyncio.ensure_future(anext(events))
                waiters: set[asyncio.Future[object]] = {next_event}
                if stop_waiter is not None:
                    waiters.add(stop_waiter)
                await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
                if not next_event.done():
                    break
                received, next_event = next_event, None
                try:
                    event = received.result()
                except StopAsyncIteration:
                    break

                if self._config.max_concurrency == 1:
                    try:
                        await self.process(event)
                    except Exception:
                        _logger.exception("Processing request %s crashed", event.request_id)
                        self._processed += 1
                else:
                    task = asyncio.create_task(self._process_bounded(event))
                    self._tasks.add(task)
                    task.add_done_callback(self._on_task_done)
        finally:
            if next_event is not None and not next_event.done():
                next_event.cancel()
                await asyncio.wait({next_event})
            if stop_waiter is not None:
                stop_waiter.cancel()
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()
            _logger.info("Oracle relay stopped after %d requests", self._processed)
