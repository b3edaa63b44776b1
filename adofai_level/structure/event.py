from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Union

from dataclasses_json import CatchAll, Undefined, dataclass_json
from dataclasses_json.cfg import config

TWIRL = "Twirl"
POSITION_TRACK = "PositionTrack"


def exclude_none(decoder=None):
    return field(
        default=None, metadata=config(decoder=decoder, exclude=lambda x: x is None)
    )


@dataclass_json(undefined=Undefined.INCLUDE)
@dataclass
class Event:
    eventType: str
    floor: Optional[int] = exclude_none()
    positionOffset: Optional[List[Any]] = exclude_none()
    editorOnly: Optional[Union[bool, str]] = exclude_none()
    # every other key of the event, kept as-is
    extra: CatchAll = field(default_factory=dict)

    @property
    def is_editor_only(self) -> bool:
        return self.editorOnly is True or self.editorOnly == "Enabled"

    def without_floor(self) -> "Event":
        return replace(self, floor=None)

    def with_floor(self, floor: int) -> "Event":
        return replace(self, floor=floor)


def validate_event_dict_values(data: dict) -> tuple | None:
    if not isinstance(data, dict):
        return data, "Expected a dictionary for Event"
    if "eventType" not in data or not isinstance(data["eventType"], str):
        return data, "'eventType' is missing or invalid"
    if "floor" in data and (
        isinstance(data["floor"], bool) or not isinstance(data["floor"], int)
    ):
        return data, "'floor' should be an integer"
    if "positionOffset" in data and not isinstance(
        data["positionOffset"], (list, type(None))
    ):
        return data, "'positionOffset' should be a list"
    return None


def count_twirls(events: list[Event]) -> int:
    return sum(1 for event in events if event.eventType == TWIRL)
