"""
Debounced, generation-guarded analysis trigger.

Usage
-----
    scheduler = AnalysisScheduler(
        analyse=lambda text: service.analyse(text),
        snapshot=lambda: document.plain_text,
        on_result=lambda response: tracker.ingest(response.result.suggestions),
        quiescence_seconds=0.75,
    )
    scheduler.notify_edit()      # after every keystroke
    await scheduler.run_now()    # manual "check now"

Each request carries an immutable text snapshot and a generation id.  A
response is delivered only when its generation is the latest one issued and
its text still equals the live document text; anything else is a stale
response and is dropped.  In-flight calls are never cancelled.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class AnalysisRequest:
    generation: int
    text: str


@dataclasses.dataclass(frozen=True)
class AnalysisResponse:
    generation: int
    text: str
    result: Any


class AnalysisScheduler:
    """Fires at most once per quiescence window and keeps only the latest response."""

    def __init__(
        self,
        analyse: Callable[[str], Awaitable[Any]],
        snapshot: Callable[[], str],
        on_result: Callable[[AnalysisResponse], None],
        quiescence_seconds: float = 0.75,
    ) -> None:
        self._analyse = analyse
        self._snapshot = snapshot
        self._on_result = on_result
        self.quiescence_seconds = quiescence_seconds
        self._generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()
        self.stale_responses = 0
        self.failed_requests = 0

    @property
    def generation(self) -> int:
        """Id of the most recently issued request (0 before the first)."""
        return self._generation

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def notify_edit(self) -> None:
        """Restart the quiescence timer."""
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._wait_then_fire())

    async def run_now(self) -> bool:
        """Issue a request immediately; True when its result was delivered."""
        self._cancel_timer()
        return await self._issue()

    def cancel(self) -> None:
        self._cancel_timer()

    async def wait_idle(self) -> None:
        """Wait until no timer is pending and every in-flight request has settled."""
        while self.pending or self._in_flight:
            if self.pending:
                await asyncio.gather(self._timer, return_exceptions=True)
            if self._in_flight:
                await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    def deliver(self, response: AnalysisResponse) -> bool:
        if response.generation != self._generation:
            self.stale_responses += 1
            logger.debug(
                "Discarding stale analysis response (generation %d, latest %d)",
                response.generation,
                self._generation,
            )
            return False
        if response.text != self._snapshot():
            self.stale_responses += 1
            logger.debug("Discarding analysis response for outdated text (generation %d)", response.generation)
            return False
        self._on_result(response)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _wait_then_fire(self) -> None:
        await asyncio.sleep(self.quiescence_seconds)
        task = asyncio.get_running_loop().create_task(self._issue_in_background())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _issue_in_background(self) -> None:
        try:
            await self._issue()
        except Exception as exc:
            self.failed_requests += 1
            logger.error("Background analysis failed: %s", exc, exc_info=True)

    async def _issue(self) -> bool:
        self._generation += 1
        request = AnalysisRequest(self._generation, self._snapshot())
        logger.debug("Analysis request %d (%d chars)", request.generation, len(request.text))
        result = await self._analyse(request.text)
        return self.deliver(AnalysisResponse(request.generation, request.text, result))
