from __future__ import annotations

import pytest

from reactive_fsm.utils.events import EventBus


def test_publish_delivers_in_subscription_order() -> None:
    bus = EventBus()
    seen: list[str] = []
    bus.subscribe(lambda event: seen.append(f"first:{event}"))
    bus.subscribe(lambda event: seen.append(f"second:{event}"))

    invoked = bus.publish("hello")

    assert invoked == 2
    assert seen == ["first:hello", "second:hello"]


def test_unsubscribe_stops_delivery_to_that_listener_only() -> None:
    bus = EventBus()
    seen: list[str] = []
    first = bus.subscribe(lambda event: seen.append("first"))
    bus.subscribe(lambda event: seen.append("second"))

    first.unsubscribe()
    bus.publish("event")

    assert seen == ["second"]
    assert not first.active
    assert len(bus) == 1


def test_late_subscriber_does_not_see_earlier_events() -> None:
    bus = EventBus()
    bus.publish("early")
    seen: list[str] = []
    bus.subscribe(seen.append)

    bus.publish("late")

    assert seen == ["late"]


def test_listener_unsubscribing_another_mid_publish_is_safe() -> None:
    bus = EventBus()
    seen: list[str] = []
    handles = {}

    def first(event: str) -> None:
        seen.append("first")
        handles["second"].unsubscribe()

    bus.subscribe(first)
    handles["second"] = bus.subscribe(lambda event: seen.append("second"))
    bus.subscribe(lambda event: seen.append("third"))

    invoked = bus.publish("event")

    assert seen == ["first", "third"]
    assert invoked == 2


def test_listener_subscribed_mid_publish_waits_for_next_event() -> None:
    bus = EventBus()
    seen: list[str] = []

    def spawner(event: str) -> None:
        seen.append(f"spawner:{event}")
        if event == "one":
            bus.subscribe(lambda e: seen.append(f"late:{e}"))

    bus.subscribe(spawner)
    bus.publish("one")
    bus.publish("two")

    assert seen == ["spawner:one", "spawner:two", "late:two"]


def test_close_detaches_everyone_and_handles_become_inert() -> None:
    bus = EventBus()
    seen: list[str] = []
    handle = bus.subscribe(seen.append)

    bus.close()
    handle.unsubscribe()

    assert bus.closed
    assert not handle.active
    assert bus.publish("ignored") == 0
    assert seen == []
    with pytest.raises(RuntimeError):
        bus.subscribe(seen.append)


def test_listener_errors_propagate_to_publisher() -> None:
    bus = EventBus()

    def broken(event: object) -> None:
        raise KeyError("boom")

    bus.subscribe(broken)

    with pytest.raises(KeyError):
        bus.publish("event")
