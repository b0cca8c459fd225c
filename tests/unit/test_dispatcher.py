"""Tests for the background dispatcher."""

from __future__ import annotations

import asyncio
import logging

import pytest

from src.analytics.dispatcher import BackgroundDispatcher


@pytest.mark.asyncio
async def test_submit_runs_without_awaiting() -> None:
    dispatcher = BackgroundDispatcher()
    done: list[str] = []

    async def work() -> None:
        done.append("x")

    assert dispatcher.submit(work(), "work") is True
    assert done == []
    await dispatcher.drain()
    assert done == ["x"]
    assert dispatcher.pending == 0


@pytest.mark.asyncio
async def test_failures_are_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    dispatcher = BackgroundDispatcher()

    async def boom() -> None:
        raise RuntimeError("store down")

    with caplog.at_level(logging.WARNING, logger="src.analytics.dispatcher"):
        dispatcher.submit(boom(), "analytics:pitch")
        assert await dispatcher.drain() == 0
    assert "analytics:pitch" in caplog.text


@pytest.mark.asyncio
async def test_full_queue_drops_work() -> None:
    dispatcher = BackgroundDispatcher(max_pending=1)
    gate = asyncio.Event()

    async def wait() -> None:
        await gate.wait()

    assert dispatcher.submit(wait(), "first") is True
    assert dispatcher.submit(wait(), "second") is False
    gate.set()
    await dispatcher.drain()


@pytest.mark.asyncio
async def test_drain_cancels_stragglers() -> None:
    dispatcher = BackgroundDispatcher()

    async def forever() -> None:
        await asyncio.sleep(3600)

    dispatcher.submit(forever(), "slow")
    assert await dispatcher.drain(timeout=0.01) == 1
    assert dispatcher.pending == 0


@pytest.mark.asyncio
async def test_drain_with_nothing_pending() -> None:
    assert await BackgroundDispatcher().drain() == 0
