import asyncio
import logging
from typing import Any, Callable, Iterable, Iterator, Literal, Optional, Union

from ..errors import OptionTypeError, ValidationError
from ..parser.codec import decode, format_level, parse
from .derivation import LightweightLayout, TileDerivationEngine, derive_lightweight
from .event import Event
from .level_data import RawLevelData, validate_level_dict_values
from .progress import LOAD_TOPIC, EventBus, ProgressChannel, ProgressMode
from .tile import Tile

logger = logging.getLogger(__name__)

LevelOptions = Union[str, bytes, bytearray, memoryview, dict]
ParseProvider = Callable[[str], dict]
PathConverter = Callable[[str], list]
Formatter = Callable[[dict, int, bool, str, int], str]

_OPTION_TYPES = (str, bytes, bytearray, memoryview, dict)


def read_level_data(
    options: LevelOptions,
    provider: Optional[ParseProvider] = None,
    path_converter: Optional[PathConverter] = None,
    channel: Optional[ProgressChannel] = None,
) -> RawLevelData:
    """Decode and validate level options and resolve their angle data.

    Text goes through ``provider`` (the tolerant decoder by default), raw
    bytes always go through the tolerant decoder, dicts are used as-is.
    ``pathData`` takes precedence over ``angleData`` when a
    ``path_converter`` is given.
    """
    if isinstance(options, str):
        data = (provider or parse)(options)
    elif isinstance(options, (bytes, bytearray, memoryview)):
        data = decode(options)
    elif isinstance(options, dict):
        data = dict(options)
    else:
        raise OptionTypeError(options)

    validation_result = validate_level_dict_values(data)
    if validation_result:
        raise ValidationError(*validation_result)
    raw = RawLevelData.from_dict(data)

    if raw.pathData is not None and path_converter is not None:
        total = len(raw.pathData)
        if channel is not None:
            channel.emit("pathData", 0, total, {"source": raw.pathData})
        raw.angleData = list(path_converter(raw.pathData))
        if channel is not None:
            channel.emit(
                "pathData",
                total,
                total,
                {"source": raw.pathData, "processed": raw.angleData},
            )
    elif raw.angleData is None:
        raise ValidationError(data, "'pathData' needs a path converter")
    elif raw.pathData is not None:
        logger.warning("No path converter given, ignoring pathData in favor of angleData")

    if channel is not None:
        total = len(raw.angleData)
        channel.emit("angleData", total, total, {"processed": raw.angleData})
    return raw


def load_lightweight(
    options: LevelOptions,
    provider: Optional[ParseProvider] = None,
    path_converter: Optional[PathConverter] = None,
) -> LightweightLayout:
    """Derive the lightweight layout of a level without building any tiles."""
    return derive_lightweight(read_level_data(options, provider, path_converter))


class Level:
    def __init__(
        self,
        options: LevelOptions,
        provider: Optional[ParseProvider] = None,
        *,
        path_converter: Optional[PathConverter] = None,
        progress_mode: ProgressMode = ProgressMode.LIVE,
        formatter: Optional[Formatter] = None,
    ):
        self._options = options
        self._provider = provider
        self._path_converter = path_converter
        self._formatter = formatter or format_level

        self.bus = EventBus()
        self.progress = ProgressChannel(self.bus, progress_mode)
        self._engine = TileDerivationEngine(self.progress)

        self.settings: dict = {}
        self.tiles: list[Tile] = []
        self.positions: list[list[float]] = []
        self.lightweight: Optional[LightweightLayout] = None
        self.revision = 0

    # ==== Loading ====
    def _load_steps(self) -> Iterator[int]:
        if not isinstance(self._options, _OPTION_TYPES):
            raise OptionTypeError(self._options)
        self.progress.clear()
        self.progress.emit("start", 0, 0)

        raw = read_level_data(
            self._options, self._provider, self._path_converter, self.progress
        )
        logger.debug("Deriving %d tiles", len(raw.angleData))

        tiles: list[Tile] = []
        yield from self._engine.iter_derive(raw, tiles)
        positions = self._engine.assign_positions(tiles)

        self.settings = raw.settings
        self.tiles = tiles
        self.positions = positions
        self.revision += 1

        total = len(tiles)
        self.progress.emit("complete", total, total)
        self.trigger(LOAD_TOPIC, self)

    def load(self) -> bool:
        """Parse the options and derive every tile.

        :raises OptionTypeError: options are neither text nor a dict.
        :raises StructuralParseError: text is not JSON even after normalization.
        :raises ValidationError: settings or angle data are missing.
        """
        for _ in self._load_steps():
            pass
        return True

    async def load_async(self) -> bool:
        """Like :meth:`load`, handing control back to the event loop at every
        cooperative yield point of a live derivation."""
        for _ in self._load_steps():
            await asyncio.sleep(0)
        return True

    # ==== Subscriptions ====
    def on(self, topic: str, callback: Callable[[Any], None]) -> str:
        return self.bus.subscribe(topic, callback)

    def off(self, handle: str) -> bool:
        return self.bus.unsubscribe(handle)

    def trigger(self, topic: str, data: Any) -> None:
        self.bus.publish(topic, data)

    # ==== Queries ====
    @property
    def angle_data(self) -> list[float]:
        return [tile.direction for tile in self.tiles]

    def filter_actions_by_event_type(self, event_type: str) -> list[tuple[int, Event]]:
        return [
            (floor, action)
            for floor, tile in enumerate(self.tiles)
            for action in tile.actions
            if action.eventType == event_type
        ]

    def get_actions_by_index(self, event_type: str, index: int) -> list[Event]:
        return [a for a in self.tiles[index].actions if a.eventType == event_type]

    # ==== Derived data ====
    def recompute_angles(self) -> None:
        """Replay angles and positions over all tiles from their stored state.

        Positions are refreshed without progress events.
        """
        self._engine.refresh_angles(self.tiles)
        self.positions = self._engine.assign_positions(self.tiles, report=False)
        self.revision += 1

    def calculate_tile_positions(self) -> list[list[float]]:
        self.positions = self._engine.assign_positions(self.tiles)
        return self.positions

    def compute_lightweight(self) -> LightweightLayout:
        """Take a lightweight snapshot of the current tiles.

        The snapshot is not updated by later edits, see
        :attr:`lightweight_is_stale`.
        """
        self.lightweight = derive_lightweight(self._current_raw(), self.revision)
        return self.lightweight

    @property
    def lightweight_is_stale(self) -> bool:
        return self.lightweight is None or self.lightweight.revision != self.revision

    # ==== Floor editing ====
    def append_floor(self, direction: float) -> Tile:
        return self.insert_floor(len(self.tiles), direction)

    def insert_floor(self, index: int, direction: float) -> Tile:
        if not 0 <= index <= len(self.tiles):
            raise IndexError(f"Floor {index} is out of range for insert (0..{len(self.tiles)})")
        predecessor = self.tiles[index - 1] if index > 0 else None
        tile = Tile(
            direction=direction,
            previous_direction=predecessor.direction if predecessor else 0,
            twirl=predecessor.twirl if predecessor else 0,
        )
        self.tiles.insert(index, tile)
        self.recompute_angles()
        return tile

    def delete_floor(self, index: int) -> Tile:
        if not 0 <= index < len(self.tiles):
            raise IndexError(f"Floor {index} is out of range for delete (0..{len(self.tiles) - 1})")
        tile = self.tiles.pop(index)
        self.recompute_angles()
        return tile

    def floor_operation(
        self,
        kind: Literal["append", "insert", "delete"] = "append",
        direction: float = 0,
        index: Optional[int] = None,
    ) -> Tile:
        match kind:
            case "append":
                return self.append_floor(direction)
            case "insert" | "delete" if index is None:
                raise ValueError(f"Floor operation {kind} needs an index")
            case "insert":
                return self.insert_floor(index, direction)
            case "delete":
                return self.delete_floor(index)
            case _:
                raise ValueError(f"Unknown floor operation: {kind}")

    # ==== Event cleaning ====
    def clear_decorations(self) -> None:
        for tile in self.tiles:
            tile.decorations = []
        self.revision += 1

    def keep_events(self, event_types: Iterable[str]) -> None:
        keep = set(event_types)
        for tile in self.tiles:
            tile.actions = [a for a in tile.actions if a.eventType in keep]
            tile.decorations = [d for d in tile.decorations if d.eventType in keep]
        self.recompute_angles()

    def clear_events(self, event_types: Iterable[str]) -> None:
        drop = set(event_types)
        for tile in self.tiles:
            tile.actions = [a for a in tile.actions if a.eventType not in drop]
            tile.decorations = [d for d in tile.decorations if d.eventType not in drop]
        self.recompute_angles()

    def clear_event(self, preset: dict) -> None:
        """Apply a ``{"type": "include" | "exclude", "events": [...]}`` preset."""
        match preset.get("type"):
            case "include":
                self.keep_events(preset["events"])
            case "exclude":
                self.clear_events(preset["events"])
            case _:
                raise ValueError(f"Unknown preset type: {preset.get('type')}")

    # ==== Export ====
    def _current_raw(self) -> RawLevelData:
        return RawLevelData(
            settings=self.settings,
            angleData=self.angle_data,
            actions=[
                a.with_floor(floor)
                for floor, tile in enumerate(self.tiles)
                for a in tile.actions
            ],
            decorations=[
                d.with_floor(floor)
                for floor, tile in enumerate(self.tiles)
                for d in tile.decorations
            ],
        )

    def export(
        self,
        as_text: bool = False,
        indent: int = 0,
        use_game_style: bool = True,
        indent_char: str = "\t",
        indent_step: int = 1,
    ) -> Union[str, dict]:
        raw = self._current_raw()
        level = {
            "angleData": raw.angleData,
            "settings": raw.settings,
            "actions": [a.to_dict() for a in raw.actions],
            "decorations": [d.to_dict() for d in raw.decorations],
        }
        if not as_text:
            return level
        return self._formatter(level, indent, use_game_style, indent_char, indent_step)
