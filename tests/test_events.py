import pytest

from rogue_kernel.events import EventBus, KernelEventType


def test_listeners_called_in_subscription_order():
    bus = EventBus()
    calls = []
    bus.subscribe(KernelEventType.HIT, lambda e: calls.append(("first", e.payload["damage"])))
    bus.subscribe(KernelEventType.HIT, lambda e: calls.append(("second", e.turn)))
    event = bus.emit(KernelEventType.HIT, 3, damage=4)
    assert calls == [("first", 4), ("second", 3)]
    assert event.type is KernelEventType.HIT


def test_listeners_only_receive_their_event_type():
    bus = EventBus()
    kills = []
    bus.subscribe(KernelEventType.KILL, kills.append)
    bus.emit(KernelEventType.HIT, 1)
    assert kills == []


def test_unsubscribe():
    bus = EventBus()
    calls = []
    bus.subscribe("level_up", calls.append)
    bus.unsubscribe(KernelEventType.LEVEL_UP, calls.append)
    bus.emit(KernelEventType.LEVEL_UP, 1)
    assert calls == []


def test_failing_listener_does_not_stop_the_rest():
    bus = EventBus()
    calls = []

    def broken(event):
        raise RuntimeError("speaker unplugged")

    bus.subscribe(KernelEventType.FOOTSTEP, broken)
    bus.subscribe(KernelEventType.FOOTSTEP, calls.append)
    bus.emit(KernelEventType.FOOTSTEP, 1)
    assert len(calls) == 1


def test_non_callable_rejected():
    with pytest.raises(TypeError):
        EventBus().subscribe(KernelEventType.KILL, "not a function")
