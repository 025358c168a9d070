from __future__ import annotations

import asyncio
import logging

import pytest

from homehub._periodic import PeriodicTask


@pytest.mark.asyncio
async def test_ticks_until_stopped() -> None:
    calls: list[int] = []
    timer = PeriodicTask("test", 0.01, lambda: calls.append(1))

    timer.start()
    timer.start()
    await asyncio.sleep(0.05)
    await timer.stop()
    seen = len(calls)
    await asyncio.sleep(0.03)

    assert seen >= 1
    assert len(calls) == seen
    assert timer.ticks == seen
    assert not timer.running


@pytest.mark.asyncio
async def test_immediate_runs_first_tick_without_waiting() -> None:
    calls: list[int] = []
    timer = PeriodicTask("test", 10.0, lambda: calls.append(1), immediate=True)

    timer.start()
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    await timer.stop()

    assert calls == [1]


@pytest.mark.asyncio
async def test_async_callback_and_failures(caplog: pytest.LogCaptureFixture) -> None:
    calls: list[int] = []

    async def flaky() -> None:
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("first tick fails")

    timer = PeriodicTask("flaky", 0.01, flaky, immediate=True)
    with caplog.at_level(logging.ERROR, logger="homehub._periodic"):
        timer.start()
        await asyncio.sleep(0.05)
        await timer.stop()

    assert len(calls) >= 2
    assert any("Timer flaky tick failed" in record.message for record in caplog.records)


@pytest.mark.asyncio
async def test_stop_propagates_caller_cancellation() -> None:
    entered = asyncio.Event()
    release = asyncio.Event()

    async def slow_to_stop() -> None:
        entered.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            await release.wait()
            raise

    timer = PeriodicTask("slow", 10.0, slow_to_stop, immediate=True)
    timer.start()
    await entered.wait()

    stopper = asyncio.create_task(timer.stop())
    await asyncio.sleep(0)
    stopper.cancel()
    with pytest.raises(asyncio.CancelledError):
        await stopper

    release.set()
    await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_stop_without_start() -> None:
    await PeriodicTask("idle", 1.0, lambda: None).stop()


def test_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        PeriodicTask("bad", 0, lambda: None)
