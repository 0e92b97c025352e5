import asyncio

from engine_fakes import FakeGenerator, FakeStaticStore, make_question, wait_for
from prep_engine.blueprint import subject_sequence
from prep_engine.models import QuestionSlot
from prep_engine.question_source import Batch, QuestionSource
from prep_engine.window_loader import WindowLoader


def _loader(generator=None, store=None, windows=1, size=30, target="Mathematics", **kwargs):
    slots = [QuestionSlot(i) for i in range(windows * size)]
    source = QuestionSource(generator or FakeGenerator(), store or FakeStaticStore(), static_blend=0)
    return WindowLoader(slots, size, source, target, **kwargs)


def test_load_window_fills_slots_in_order() -> None:
    loader = _loader()
    filled = asyncio.run(loader.load_window(0))

    assert filled == 30
    assert loader.is_loaded(0)
    status = loader.status(0)
    assert status.settled and not status.loading and status.failure is None
    assert [slot.question.id for slot in loader.slots[:3]] == [
        "gen-Mathematics-0",
        "gen-Mathematics-1",
        "gen-Mathematics-2",
    ]


def test_loaded_window_is_not_requested_again() -> None:
    generator = FakeGenerator()
    loader = _loader(generator)

    async def scenario():
        await loader.load_window(0)
        return await loader.load_window(0)

    assert asyncio.run(scenario()) == 0
    assert len(generator.calls) == 1


def test_concurrent_start_reuses_in_flight_load() -> None:
    generator = FakeGenerator(delays={"Mathematics": 0.01})
    loader = _loader(generator)

    async def scenario():
        first = loader.start(0)
        second = loader.start(0)
        assert first is second
        await first

    asyncio.run(scenario())
    assert len(generator.calls) == 1


def test_full_window_slots_follow_subject_sequence() -> None:
    generator = FakeGenerator(delays={"Mathematics": 0.02, "Physics": 0.01})
    loader = _loader(generator, windows=4, size=50, target="Full")

    asyncio.run(loader.load_window(0))

    assert [slot.question.subject for slot in loader.slots[:50]] == subject_sequence(0)
    assert all(not slot.is_loaded for slot in loader.slots[50:])


def test_short_window_reports_partial_failure() -> None:
    loader = _loader(FakeGenerator(supply={"Mathematics": 20}))
    asyncio.run(loader.load_window(0))

    assert loader.loaded_count(0) == 20
    assert not loader.is_loaded(0)
    assert "20 of 30" in loader.status(0).failure
    assert all(not slot.is_loaded for slot in loader.slots[20:])


def test_failed_window_is_settled_with_failure() -> None:
    loader = _loader(FakeGenerator(failing={"Mathematics"}))
    filled = asyncio.run(loader.load_window(0))

    assert filled == 0
    status = loader.status(0)
    assert status.settled
    assert status.failure


def test_writes_after_close_are_discarded() -> None:
    writable = [True]
    generator = FakeGenerator(delays={"Mathematics": 0.01})
    loader = _loader(generator, target="Full", windows=4, size=50, is_writable=lambda: writable[0])

    async def scenario():
        task = loader.start(0)
        await wait_for(lambda: loader.loaded_count(0) > 0)
        writable[0] = False
        await task

    asyncio.run(scenario())
    # Chemistry and Physics blocks landed before the close, Mathematics did not
    assert loader.loaded_count(0) < 50
    assert all(not slot.is_loaded for slot in loader.slots[:25])
    assert loader.status(0).failure is None


def test_overflow_is_dropped() -> None:
    loader = _loader(size=4)
    batch = Batch(2, tuple(make_question(n=n) for n in range(6)))

    placed = loader._place(0, batch)

    assert placed == 2
    assert [slot.is_loaded for slot in loader.slots] == [False, False, True, True]


def test_on_change_is_notified() -> None:
    changes = []
    loader = _loader(on_change=lambda: changes.append(loader.loaded_count(0)))
    asyncio.run(loader.load_window(0))
    assert changes[0] == 0
    assert changes[-1] == 30


def test_cancel_stops_in_flight_load() -> None:
    loader = _loader(FakeGenerator(delays={"Mathematics": 1.0}))

    async def scenario():
        task = loader.start(0)
        await asyncio.sleep(0.01)
        loader.cancel()
        await asyncio.wait([task])
        return task

    task = asyncio.run(scenario())
    assert task.cancelled()
    assert loader.loaded_count(0) == 0
    assert not loader.status(0).loading
