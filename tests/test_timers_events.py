import asyncio
import logging

from docchat.events import EventChannel, NavigationIntent, PreviewHide
from docchat.timers import TimerRegistry


def test_rescheduling_a_key_replaces_the_pending_timer(timers, scheduler) -> None:
    fired: list[str] = []

    timers.schedule("k", 1.0, lambda: fired.append("first"))
    timers.schedule("k", 1.0, lambda: fired.append("second"))
    scheduler.advance(2.0)

    assert fired == ["second"]
    assert not timers.pending("k")


def test_cancel_reports_whether_a_timer_was_pending(timers, scheduler) -> None:
    fired: list[int] = []
    timers.schedule("a", 0.5, lambda: fired.append(1))
    timers.schedule("b", 0.5, lambda: fired.append(2))

    assert timers.cancel("a")
    assert not timers.cancel("a")
    timers.cancel_all()
    scheduler.advance(1.0)

    assert fired == []
    assert len(timers) == 0


def test_callback_may_reschedule_its_own_key(timers, scheduler) -> None:
    fired: list[float] = []

    def tick() -> None:
        fired.append(timers.now())
        if len(fired) < 3:
            timers.schedule("tick", 1.0, tick)

    timers.schedule("tick", 1.0, tick)
    scheduler.advance(5.0)

    assert fired == [1.0, 2.0, 3.0]


def test_registry_runs_on_an_asyncio_loop() -> None:
    async def scenario() -> list[str]:
        fired: list[str] = []
        registry = TimerRegistry(asyncio.get_running_loop())
        registry.schedule("k", 0.01, lambda: fired.append("done"))
        await asyncio.sleep(0.05)
        return fired

    assert asyncio.run(scenario()) == ["done"]


def test_publish_delivers_by_event_type() -> None:
    channel = EventChannel()
    intents: list = []
    hides: list = []
    channel.subscribe(NavigationIntent, intents.append)
    channel.subscribe(PreviewHide, hides.append)

    delivered = channel.publish(NavigationIntent(document_id="d", chunk_id="c"))

    assert delivered == 1
    assert len(intents) == 1
    assert hides == []


def test_unsubscribe_stops_delivery() -> None:
    channel = EventChannel()
    received: list = []
    unsubscribe = channel.subscribe(PreviewHide, received.append)

    unsubscribe()
    channel.publish(PreviewHide(key="k"))

    assert received == []
    assert channel.subscriber_count(PreviewHide) == 0


def test_failing_handler_does_not_block_others(caplog) -> None:
    channel = EventChannel()
    received: list = []

    def broken(_event) -> None:
        raise RuntimeError("handler bug")

    channel.subscribe(PreviewHide, broken)
    channel.subscribe(PreviewHide, received.append)

    with caplog.at_level(logging.ERROR, logger="docchat.events"):
        delivered = channel.publish(PreviewHide(key="k"))

    assert delivered == 1
    assert received == [PreviewHide(key="k")]
    assert "Event handler failed" in caplog.text
