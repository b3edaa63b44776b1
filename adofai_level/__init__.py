__version__ = "0.1.0"
__all__ = [
    "Level",
    "Tile",
    "Event",
    "RawLevelData",
    "ProgressMode",
    "ProgressEvent",
    "LightweightLayout",
    "derive_lightweight",
    "load_lightweight",
    "detect",
    "decode",
    "encode",
    "LevelError",
    "StructuralParseError",
    "ValidationError",
    "OptionTypeError",
]

from .errors import LevelError, StructuralParseError, ValidationError, OptionTypeError
from .parser import decode, encode
from .structure import (
    Level,
    Tile,
    Event,
    RawLevelData,
    ProgressMode,
    ProgressEvent,
    LightweightLayout,
    derive_lightweight,
    load_lightweight,
)
from .detector import detect
