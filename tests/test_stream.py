"""Tests for the pull-based EventStream adapter."""

import asyncio
import gc

import pytest

from emitron import EventStream


@pytest.mark.asyncio
async def test_pending_pull_resolves_with_emitted_value(emitron):
    stream = emitron.events("simpleEvent")
    pending = anext(stream)

    emitron.emit("simpleEvent", "test")

    assert await pending == "test"


@pytest.mark.asyncio
async def test_registration_happens_on_pull_not_on_creation(emitron):
    stream = emitron.events("simpleEvent")
    assert isinstance(stream, EventStream)
    assert emitron.listener_count("simpleEvent") == 0

    pending = anext(stream)
    assert emitron.listener_count("simpleEvent") == 1

    emitron.emit("simpleEvent", "x")
    await pending
    assert emitron.listener_count("simpleEvent") == 0


@pytest.mark.asyncio
async def test_values_without_pending_pull_are_lost(emitron):
    stream = emitron.events("simpleEvent")

    emitron.emit("simpleEvent", "missed")
    pending = anext(stream)
    emitron.emit("simpleEvent", "caught")

    assert await pending == "caught"


@pytest.mark.asyncio
async def test_async_for_over_stream(emitron):
    received = []

    async def consume():
        async for value in emitron.events("arrayEvent"):
            received.append(value)
            if len(received) == 3:
                break

    task = asyncio.create_task(consume())
    for i in range(3):
        # let the consumer register its next pull
        while not emitron.has_listeners("arrayEvent"):
            await asyncio.sleep(0)
        emitron.emit("arrayEvent", [i])

    await asyncio.wait_for(task, timeout=1)
    assert received == [[0], [1], [2]]


@pytest.mark.asyncio
async def test_args_shape_yields_tuples(emitron):
    stream = emitron.events("multiArgsEvent")
    pending = anext(stream)

    emitron.emit("multiArgsEvent", "a", 1)

    assert await pending == ("a", 1)


@pytest.mark.asyncio
async def test_second_pull_while_pending_shares_registration(emitron):
    stream = emitron.events("simpleEvent")
    first = anext(stream)
    second = anext(stream)

    assert first is second
    assert emitron.listener_count("simpleEvent") == 1

    emitron.emit("simpleEvent", "v")
    assert await second == "v"


@pytest.mark.asyncio
async def test_aclose_removes_dangling_registration(emitron):
    stream = emitron.events("simpleEvent")
    pending = anext(stream)
    assert emitron.listener_count("simpleEvent") == 1

    await stream.aclose()

    assert stream.closed
    assert emitron.listener_count("simpleEvent") == 0
    with pytest.raises(StopAsyncIteration):
        await pending
    with pytest.raises(StopAsyncIteration):
        await anext(stream)


@pytest.mark.asyncio
async def test_context_manager_closes_stream(emitron):
    async with emitron.events("simpleEvent") as stream:
        anext(stream)
        assert emitron.has_listeners("simpleEvent")

    assert stream.closed
    assert not emitron.has_listeners("simpleEvent")


@pytest.mark.asyncio
async def test_cancelled_pull_unregisters(emitron):
    stream = emitron.events("simpleEvent")
    pending = anext(stream)

    pending.cancel()
    await asyncio.sleep(0)

    assert emitron.listener_count("simpleEvent") == 0

    again = anext(stream)
    emitron.emit("simpleEvent", "after-cancel")
    assert await again == "after-cancel"


@pytest.mark.asyncio
async def test_closing_with_unawaited_pull_logs_nothing(emitron, caplog):
    stream = emitron.events("simpleEvent")
    pending = anext(stream)

    await stream.aclose()

    assert pending.done()
    del pending
    gc.collect()
    await asyncio.sleep(0)
    assert "never retrieved" not in caplog.text
