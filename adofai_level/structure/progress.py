from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Literal, Optional

import base36

from ..utils import round_half_up

PROGRESS_TOPIC = "parse:progress"
LOAD_TOPIC = "load"

# cooperative yield every this many progress batches
YIELD_EVERY_BATCHES = 10

Stage = Literal[
    "start", "pathData", "angleData", "relativeAngle", "tilePosition", "complete"
]


def stage_topic(stage: Stage) -> str:
    return f"parse:{stage}"


def relative_angle_batch_size(total: int) -> int:
    return max(1, total // 100)


def tile_position_interval(total: int) -> int:
    return max(100, total // 100)


def should_yield(i: int, batch_size: int) -> bool:
    return i % (batch_size * YIELD_EVERY_BATCHES) == 0


class ProgressMode(str, Enum):
    LIVE = "live"
    PRECOMPUTED = "precomputed"


@dataclass
class ProgressEvent:
    stage: Stage
    current: int
    total: int
    percent: int
    data: dict = field(default_factory=dict)


def make_progress_event(
    stage: Stage, current: int, total: int, data: Optional[dict] = None
) -> ProgressEvent:
    percent = round_half_up(current / total * 100) if total > 0 else 0
    return ProgressEvent(stage, current, total, percent, data or {})


class EventBus:
    """Topic -> ordered callbacks, each tagged with an opaque handle."""

    def __init__(self):
        self._events: dict[str, list[tuple[str, Callable[[Any], None]]]] = {}
        self._handles: dict[str, str] = {}  # handle -> topic
        self._counter = 1

    def _next_handle(self) -> str:
        handle = f"event_{base36.dumps(self._counter)}"
        self._counter += 1
        return handle

    def subscribe(self, topic: str, callback: Callable[[Any], None]) -> str:
        handle = self._next_handle()
        self._events.setdefault(topic, []).append((handle, callback))
        self._handles[handle] = topic
        return handle

    def unsubscribe(self, handle: str) -> bool:
        topic = self._handles.pop(handle, None)
        if topic is None:
            return False
        callbacks = self._events.get(topic, [])
        for index, (h, _) in enumerate(callbacks):
            if h == handle:
                del callbacks[index]
                break
        return True

    def publish(self, topic: str, data: Any) -> None:
        # copy so callbacks may unsubscribe themselves
        for _, callback in list(self._events.get(topic, ())):
            callback(data)


class ProgressChannel:
    """Delivers staged progress events live, or buffers them per stage."""

    def __init__(self, bus: EventBus, mode: ProgressMode = ProgressMode.LIVE):
        self.bus = bus
        self.mode = ProgressMode(mode)
        self.buffered: dict[str, list[ProgressEvent]] = {}

    @property
    def is_live(self) -> bool:
        return self.mode is ProgressMode.LIVE

    def emit(
        self, stage: Stage, current: int, total: int, data: Optional[dict] = None
    ) -> ProgressEvent:
        event = make_progress_event(stage, current, total, data)
        if self.is_live:
            self._publish(event)
        else:
            self.buffered.setdefault(stage, []).append(event)
        return event

    def _publish(self, event: ProgressEvent) -> None:
        self.bus.publish(PROGRESS_TOPIC, event)
        self.bus.publish(stage_topic(event.stage), event)

    def replay(self) -> Iterator[ProgressEvent]:
        """Publish buffered events one at a time, e.g. one per frame.

        Stages are emitted contiguously, so walking the buffers in insertion
        order reproduces the emission order.
        """
        for events in list(self.buffered.values()):
            for event in events:
                self._publish(event)
                yield event

    def clear(self) -> None:
        self.buffered = {}
