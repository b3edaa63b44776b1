from .event import Event
from .tile import Tile
from .level_data import RawLevelData
from .progress import EventBus, ProgressChannel, ProgressEvent, ProgressMode
from .derivation import (
    LightweightLayout,
    TileDerivationEngine,
    derive_lightweight,
    normalize_angle,
)
from .level import Level, load_lightweight, read_level_data
