"""Discrete kernel notifications for audio and UI listeners.

The kernel publishes an event whenever something a listener might react to
happens (a turn-advancing footstep, a hit, a kill, a level-up). Listeners are
called synchronously in subscription order; a listener that raises is logged
and skipped so the turn still completes.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, DefaultDict, Dict, List

import structlog

log = structlog.get_logger(__name__)


class KernelEventType(str, Enum):
    FOOTSTEP = "footstep"
    HIT = "hit"
    MISS = "miss"
    KILL = "kill"
    LEVEL_UP = "level_up"
    STARVED = "starved"
    DESCEND = "descend"
    PLAYER_DIED = "player_died"


@dataclass(frozen=True)
class KernelEvent:
    type: KernelEventType
    turn: int
    payload: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[KernelEvent], None]


class EventBus:
    def __init__(self) -> None:
        self._subs: DefaultDict[KernelEventType, List[Listener]] = defaultdict(list)

    def subscribe(self, event_type: KernelEventType, listener: Listener) -> None:
        if not callable(listener):
            raise TypeError("listener must be callable")
        self._subs[KernelEventType(event_type)].append(listener)
        log.debug(
            "Listener subscribed",
            event_type=KernelEventType(event_type).value,
            listener=getattr(listener, "__name__", repr(listener)),
        )

    def unsubscribe(self, event_type: KernelEventType, listener: Listener) -> None:
        listeners = self._subs.get(KernelEventType(event_type))
        if listeners and listener in listeners:
            listeners.remove(listener)

    def emit(self, event_type: KernelEventType, turn: int, **payload: Any) -> KernelEvent:
        event = KernelEvent(KernelEventType(event_type), turn, payload)
        for listener in list(self._subs.get(event.type, ())):
            try:
                listener(event)
            except Exception as e:
                log.error(
                    "Event listener failed",
                    event_type=event.type.value,
                    listener=getattr(listener, "__name__", repr(listener)),
                    error=str(e),
                    exc_info=True,
                )
        return event
