import pytest

from .progress import (
    PROGRESS_TOPIC,
    EventBus,
    ProgressChannel,
    ProgressMode,
    make_progress_event,
    relative_angle_batch_size,
    tile_position_interval,
)


@pytest.mark.parametrize(
    "current, total, percent",
    [(0, 0, 0), (5, 0, 0), (1, 3, 33), (1, 2, 50), (1, 8, 13), (3, 8, 38), (250, 250, 100)],
)
def test_percent(current, total, percent):
    assert make_progress_event("relativeAngle", current, total).percent == percent


def test_batch_sizes():
    assert relative_angle_batch_size(0) == 1
    assert relative_angle_batch_size(99) == 1
    assert relative_angle_batch_size(250) == 2
    assert tile_position_interval(250) == 100
    assert tile_position_interval(50000) == 500


def test_bus_order_and_unsubscribe():
    bus = EventBus()
    received = []
    first = bus.subscribe("topic", lambda data: received.append(("first", data)))
    second = bus.subscribe("topic", lambda data: received.append(("second", data)))
    assert first != second
    assert first.startswith("event_")

    bus.publish("topic", 1)
    assert received == [("first", 1), ("second", 1)]

    assert bus.unsubscribe(first) is True
    assert bus.unsubscribe(first) is False
    assert bus.unsubscribe("event_unknown") is False
    bus.publish("topic", 2)
    bus.publish("other", 3)
    assert received[2:] == [("second", 2)]


def test_bus_callback_may_unsubscribe_itself():
    bus = EventBus()
    received = []
    handles = {}

    def once(data):
        received.append(data)
        bus.unsubscribe(handles["once"])

    handles["once"] = bus.subscribe("topic", once)
    bus.subscribe("topic", received.append)
    bus.publish("topic", "a")
    bus.publish("topic", "b")
    assert received == ["a", "a", "b"]


def test_live_channel_publishes_both_topics():
    bus = EventBus()
    overall, per_stage = [], []
    bus.subscribe(PROGRESS_TOPIC, overall.append)
    bus.subscribe("parse:angleData", per_stage.append)

    channel = ProgressChannel(bus)
    channel.emit("start", 0, 0)
    event = channel.emit("angleData", 3, 3, {"processed": [0, 90, 180]})

    assert [e.stage for e in overall] == ["start", "angleData"]
    assert per_stage == [event]
    assert event.percent == 100
    assert event.data == {"processed": [0, 90, 180]}
    assert channel.buffered == {}


def test_precomputed_channel_buffers_and_replays():
    bus = EventBus()
    received = []
    bus.subscribe(PROGRESS_TOPIC, received.append)

    channel = ProgressChannel(bus, ProgressMode.PRECOMPUTED)
    assert not channel.is_live
    channel.emit("start", 0, 0)
    channel.emit("relativeAngle", 1, 2)
    channel.emit("relativeAngle", 2, 2)
    channel.emit("complete", 2, 2)
    assert received == []
    assert list(channel.buffered) == ["start", "relativeAngle", "complete"]
    assert len(channel.buffered["relativeAngle"]) == 2

    replay = channel.replay()
    first = next(replay)
    assert received == [first]
    rest = list(replay)
    assert [e.stage for e in [first] + rest] == [
        "start",
        "relativeAngle",
        "relativeAngle",
        "complete",
    ]
    assert received == [first] + rest

    channel.clear()
    assert channel.buffered == {}


def test_mode_from_string():
    assert ProgressChannel(EventBus(), "precomputed").mode is ProgressMode.PRECOMPUTED
