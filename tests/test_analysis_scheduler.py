"""Tests for debouncing and stale-response handling in the analysis scheduler."""
import asyncio

import pytest

from inkwell.services.analysis_scheduler import AnalysisResponse, AnalysisScheduler


class Harness:
    def __init__(self, text: str = "draft", quiescence: float = 0.02, gated: bool = False):
        self.text = text
        self.calls = []
        self.delivered = []
        self.gates = []
        self.gated = gated
        self.scheduler = AnalysisScheduler(
            analyse=self.analyse,
            snapshot=lambda: self.text,
            on_result=self.delivered.append,
            quiescence_seconds=quiescence,
        )

    async def analyse(self, text):
        self.calls.append(text)
        if self.gated:
            gate = asyncio.Event()
            self.gates.append(gate)
            await gate.wait()
        return f"result for {text}"


@pytest.mark.asyncio
async def test_rapid_edits_issue_one_request():
    harness = Harness()
    harness.scheduler.notify_edit()
    harness.text = "draft two"
    harness.scheduler.notify_edit()
    assert harness.scheduler.pending

    await harness.scheduler.wait_idle()

    assert harness.calls == ["draft two"]
    assert harness.scheduler.generation == 1
    assert [r.result for r in harness.delivered] == ["result for draft two"]


@pytest.mark.asyncio
async def test_run_now_delivers_immediately():
    harness = Harness(quiescence=10)
    harness.scheduler.notify_edit()

    assert await harness.scheduler.run_now() is True

    assert not harness.scheduler.pending
    assert harness.delivered[0].generation == 1


@pytest.mark.asyncio
async def test_out_of_order_response_is_discarded():
    harness = Harness(gated=True)
    first = asyncio.create_task(harness.scheduler.run_now())
    await asyncio.sleep(0)
    second = asyncio.create_task(harness.scheduler.run_now())
    await asyncio.sleep(0)
    assert len(harness.gates) == 2

    harness.gates[1].set()
    assert await second is True
    harness.gates[0].set()
    assert await first is False

    assert [r.generation for r in harness.delivered] == [2]
    assert harness.scheduler.stale_responses == 1


@pytest.mark.asyncio
async def test_response_for_changed_text_is_discarded():
    harness = Harness(gated=True)
    request = asyncio.create_task(harness.scheduler.run_now())
    await asyncio.sleep(0)

    harness.text = "draft, edited while analysis ran"
    harness.gates[0].set()

    assert await request is False
    assert harness.delivered == []
    assert harness.scheduler.stale_responses == 1


def test_deliver_checks_generation_and_text():
    harness = Harness()
    scheduler = harness.scheduler
    assert scheduler.deliver(AnalysisResponse(1, "draft", "x")) is False
    scheduler._generation = 1
    assert scheduler.deliver(AnalysisResponse(1, "other", "x")) is False
    assert scheduler.deliver(AnalysisResponse(1, "draft", "x")) is True
    assert len(harness.delivered) == 1


@pytest.mark.asyncio
async def test_cancel_stops_pending_timer():
    harness = Harness(quiescence=0.01)
    harness.scheduler.notify_edit()
    harness.scheduler.cancel()
    await asyncio.sleep(0.05)
    assert harness.calls == []
    assert not harness.scheduler.pending


@pytest.mark.asyncio
async def test_background_failure_is_counted():
    async def failing(text):
        raise RuntimeError("checker exploded")

    delivered = []
    scheduler = AnalysisScheduler(failing, lambda: "draft", delivered.append, quiescence_seconds=0.01)
    scheduler.notify_edit()

    await scheduler.wait_idle()

    assert scheduler.failed_requests == 1
    assert delivered == []


def test_notify_edit_requires_running_loop():
    harness = Harness()
    with pytest.raises(RuntimeError):
        harness.scheduler.notify_edit()
