import asyncio

import pytest

from prep_engine.countdown import Countdown


def test_tick_fires_expiry_once() -> None:
    fired = []

    async def scenario() -> None:
        clock = Countdown(2, lambda: fired.append(True))
        await clock.tick()
        assert clock.remaining == 1
        await clock.tick()
        await clock.tick()
        assert clock.remaining == 0
        assert clock.expired

    asyncio.run(scenario())
    assert fired == [True]


def test_async_expiry_callback_is_awaited() -> None:
    fired = []

    async def on_expire() -> None:
        await asyncio.sleep(0)
        fired.append("expired")

    async def scenario() -> None:
        clock = Countdown(1, on_expire)
        await clock.tick()

    asyncio.run(scenario())
    assert fired == ["expired"]


def test_running_clock_expires() -> None:
    fired = []

    async def scenario() -> None:
        clock = Countdown(3, lambda: fired.append(True), tick_interval=0.001)
        clock.start()
        assert clock.running
        for _ in range(1000):
            if clock.expired:
                break
            await asyncio.sleep(0.001)
        assert clock.expired
        assert not clock.running

    asyncio.run(scenario())
    assert fired == [True]


def test_stop_is_idempotent_and_keeps_remaining() -> None:
    fired = []

    async def scenario() -> None:
        clock = Countdown(10, lambda: fired.append(True), tick_interval=0.001)
        clock.start()
        await asyncio.sleep(0.01)
        clock.stop()
        clock.stop()
        remaining = clock.remaining
        await clock.tick()
        assert clock.remaining == remaining
        assert remaining >= 0

    asyncio.run(scenario())
    assert fired == []


def test_negative_duration_rejected() -> None:
    with pytest.raises(ValueError):
        Countdown(-1, lambda: None)


def test_stop_during_expiry_lets_callback_finish() -> None:
    events = []
    release = asyncio.Event()

    async def on_expire() -> None:
        events.append("expiring")
        await release.wait()
        events.append("saved")

    async def scenario() -> None:
        clock = Countdown(1, on_expire, tick_interval=0.001)
        clock.start()
        for _ in range(1000):
            if events:
                break
            await asyncio.sleep(0.001)
        clock.stop()
        release.set()
        for _ in range(100):
            if len(events) == 2:
                break
            await asyncio.sleep(0.001)

    asyncio.run(scenario())
    assert events == ["expiring", "saved"]


def test_failing_expiry_callback_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    async def on_expire() -> None:
        raise RuntimeError("save exploded")

    async def scenario() -> None:
        clock = Countdown(1, on_expire, tick_interval=0.001)
        clock.start()
        for _ in range(1000):
            if clock.expired:
                break
            await asyncio.sleep(0.001)
        await asyncio.sleep(0.01)

    with caplog.at_level("ERROR", logger="prep_engine.countdown"):
        asyncio.run(scenario())
    assert "Countdown expiry failed" in caplog.text
