from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from dataclasses_json import Undefined, dataclass_json

from .event import Event, exclude_none, validate_event_dict_values


@dataclass_json(undefined=Undefined.EXCLUDE)
@dataclass
class RawLevelData:
    settings: Dict[str, Any]
    # directions stay int or float as written
    angleData: Optional[List[Union[int, float]]] = exclude_none(decoder=list)
    pathData: Optional[str] = exclude_none()
    actions: List[Event] = field(default_factory=list)
    decorations: List[Event] = field(default_factory=list)


def validate_level_dict_values(data: dict) -> tuple | None:
    if not isinstance(data, dict):
        return data, "Expected a dictionary for level data"
    if "pathData" not in data and "angleData" not in data:
        return data, "There is not any angle data"
    if "pathData" in data and not isinstance(data["pathData"], str):
        return data, "'pathData' should be a string"
    if "angleData" in data:
        if not isinstance(data["angleData"], list):
            return data, "'angleData' should be a list"
        if any(
            isinstance(i, bool) or not isinstance(i, (int, float))
            for i in data["angleData"]
        ):
            return data, "Some elements in 'angleData' are not numbers"
    if "settings" not in data or not isinstance(data["settings"], dict):
        return data, "There are no level settings"
    for key in ("actions", "decorations"):
        if key not in data:
            continue
        if not isinstance(data[key], list):
            return data, f"'{key}' should be a list"
        for item in data[key]:
            validation_result = validate_event_dict_values(item)
            if validation_result:
                return validation_result
    return None
