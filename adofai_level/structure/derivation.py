import logging
import math
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence

import numpy as np

from ..errors import ValidationError
from .event import Event, POSITION_TRACK, TWIRL, count_twirls
from .level_data import RawLevelData
from .progress import (
    ProgressChannel,
    Stage,
    relative_angle_batch_size,
    should_yield,
    tile_position_interval,
)
from .tile import Tile

logger = logging.getLogger(__name__)

# "inherit the previous direction plus a half turn"
ANGLE_SENTINEL = 999
INITIAL_ANGLE_DIRECTION = 180


def normalize_angle(value: float) -> float:
    return ((value % 360) + 360) % 360


def _or_zero(value) -> float:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return 0
    return value


class AngleTracker:
    """The facing direction carried from one floor to the next."""

    def __init__(self):
        self.direction = INITIAL_ANGLE_DIRECTION

    def step(self, direction: float, previous_direction: float, twirled: bool) -> float:
        """Return the relative angle of a tile and advance the facing direction.

        Relative angles are in ``(0, 360]``, measured clockwise, or
        counter-clockwise while twirled. A sentinel tile has angle 0 and
        faces along the previous tile's direction.
        """
        if direction == ANGLE_SENTINEL:
            self.direction = normalize_angle(_or_zero(previous_direction))
            if math.isnan(self.direction):
                self.direction = 0
            return 0
        delta = normalize_angle(self.direction - direction)
        angle = normalize_angle(360 - delta) if twirled else delta
        if angle == 0:
            angle = 360
        self.direction = normalize_angle(direction + 180)
        return angle


def relative_angles(
    directions: Sequence[float], twirl_counts: Sequence[int]
) -> Iterator[tuple[int, float, float, int, float]]:
    """Yield ``(floor, direction, previous_direction, twirl, angle)``.

    ``twirl_counts[i]`` is the number of Twirl events on floor ``i``; they
    count towards that floor's own parity.
    """
    tracker = AngleTracker()
    twirl = 0
    for i, direction in enumerate(directions):
        previous = _or_zero(directions[i - 1]) if i > 0 else 0
        twirl += twirl_counts[i]
        yield i, direction, previous, twirl, tracker.step(
            direction, previous, twirl % 2 == 1
        )


def group_by_floor(events: Iterable[Event], total: int) -> list[list[Event]]:
    groups: list[list[Event]] = [[] for _ in range(total)]
    dropped = 0
    for event in events:
        if event.floor is None or not 0 <= event.floor < total:
            dropped += 1
            continue
        groups[event.floor].append(event.without_floor())
    if dropped:
        logger.warning(
            "Dropped %d event(s) with a missing or out-of-range floor", dropped
        )
    return groups


def outgoing_angles(directions: Sequence[float]) -> list[float]:
    angles = []
    for i, direction in enumerate(directions):
        if direction == ANGLE_SENTINEL:
            previous = directions[i - 1] if i > 0 else 0
            angles.append(_or_zero(previous) + 180)
        else:
            angles.append(direction)
    return angles


def build_position_track_index(
    floor_events: Iterable[tuple[int, Event]],
) -> dict[int, Event]:
    index: dict[int, Event] = {}
    for floor, event in floor_events:
        if event.eventType != POSITION_TRACK or not event.positionOffset:
            continue
        if event.is_editor_only:
            continue
        index[floor] = event
    return index


def _offset(position_offset: list) -> tuple[float, float]:
    x = position_offset[0] if len(position_offset) > 0 else 0
    y = position_offset[1] if len(position_offset) > 1 else 0
    return _or_zero(x), _or_zero(y)


def walk_positions(
    directions: Sequence[float], track_index: dict[int, Event]
) -> Iterator[tuple[int, list[float], float, float]]:
    """Yield ``(step, position, angle1, angle2)`` for steps ``0..N``.

    Step ``N`` is the closing step that places the point after the last tile.
    ``angle1`` is the outgoing angle of the step, ``angle2`` the outgoing
    angle of the step before it.
    """
    angles = outgoing_angles(directions)
    total = len(angles)
    x, y = 0.0, 0.0
    for i in range(total + 1):
        if i < total:
            angle1 = angles[i]
        else:
            angle1 = _or_zero(angles[i - 1]) if i > 0 else 0
        angle2 = _or_zero(angles[i - 1]) if i > 0 else 0

        track = track_index.get(i)
        if track is not None:
            dx, dy = _offset(track.positionOffset)
            x += dx
            y += dy

        yield i, [x, y], angle1, angle2

        rad = angle1 * math.pi / 180
        x += math.cos(rad)
        y += math.sin(rad)


def check_derivable(raw: RawLevelData) -> None:
    if raw.angleData is None:
        raise ValidationError(raw, "There is not any angle data")
    if raw.settings is None:
        raise ValidationError(raw, "There are no level settings")


@dataclass
class LightweightLayout:
    angles: np.ndarray
    positions: np.ndarray
    twirl_flags: np.ndarray
    revision: int = 0

    def to_dict(self) -> dict:
        return {
            "angles": self.angles,
            "positions": self.positions,
            "twirlFlags": self.twirl_flags,
            "revision": self.revision,
        }


def derive_lightweight(raw: RawLevelData, revision: int = 0) -> LightweightLayout:
    """Derive angles, positions and twirl flags without building tiles."""
    check_derivable(raw)
    angle_data = raw.angleData
    total = len(angle_data)

    on_floor = [
        e for e in raw.actions if e.floor is not None and 0 <= e.floor < total
    ]
    twirls = Counter(e.floor for e in on_floor if e.eventType == TWIRL)

    angles = np.empty(total, dtype=np.float64)
    twirl_flags = np.zeros(total, dtype=bool)
    for i, _, _, twirl, angle in relative_angles(angle_data, twirls):
        angles[i] = angle
        twirl_flags[i] = twirl % 2 == 1

    track_index = build_position_track_index((e.floor, e) for e in on_floor)
    positions = np.empty((total + 1, 2), dtype=np.float64)
    for i, position, _, _ in walk_positions(angle_data, track_index):
        positions[i] = position

    return LightweightLayout(angles, positions, twirl_flags, revision)


class TileDerivationEngine:
    def __init__(self, channel: Optional[ProgressChannel] = None):
        self.channel = channel

    def _emit(self, stage: Stage, current: int, total: int, data=None) -> None:
        if self.channel is not None:
            self.channel.emit(stage, current, total, data)

    @property
    def _cooperative(self) -> bool:
        return self.channel is not None and self.channel.is_live

    def derive(self, raw: RawLevelData) -> list[Tile]:
        tiles: list[Tile] = []
        for _ in self.iter_derive(raw, tiles):
            pass
        return tiles

    def iter_derive(self, raw: RawLevelData, tiles: list[Tile]) -> Iterator[int]:
        """Append one tile per floor to ``tiles``.

        Yields the floor index at each cooperative yield point so a caller
        can hand control back to its scheduler.
        """
        check_derivable(raw)
        angle_data = raw.angleData
        total = len(angle_data)
        actions = group_by_floor(raw.actions, total)
        decorations = group_by_floor(raw.decorations, total)
        twirl_counts = [count_twirls(group) for group in actions]
        batch_size = relative_angle_batch_size(total)

        for i, direction, previous, twirl, angle in relative_angles(
            angle_data, twirl_counts
        ):
            tile = Tile(
                direction=direction,
                previous_direction=previous,
                angle=angle,
                twirl=twirl,
                actions=actions[i],
                decorations=decorations[i],
            )
            tiles.append(tile)

            if i % batch_size == 0 or i == total - 1:
                self._emit(
                    "relativeAngle",
                    i + 1,
                    total,
                    {
                        "tileIndex": i,
                        "tile": tile,
                        "angle": direction,
                        "relativeAngle": angle,
                    },
                )
                if self._cooperative and should_yield(i, batch_size):
                    yield i

    def refresh_angles(self, tiles: list[Tile]) -> None:
        """Re-derive every angle from floor 0.

        Each tile keeps its stored ``twirl`` and ``previous_direction``.
        """
        tracker = AngleTracker()
        for tile in tiles:
            tile.angle = tracker.step(
                tile.direction, tile.previous_direction, tile.is_twirled
            )

    def assign_positions(
        self, tiles: list[Tile], report: bool = True
    ) -> list[list[float]]:
        """Place every tile and return the ``N + 1`` walk positions."""
        total = len(tiles)
        track_index = build_position_track_index(
            (floor, event)
            for floor, tile in enumerate(tiles)
            for event in tile.actions
        )
        interval = tile_position_interval(total)
        positions: list[list[float]] = []

        if report:
            self._emit("tilePosition", 0, total)

        for i, position, angle1, angle2 in walk_positions(
            [tile.direction for tile in tiles], track_index
        ):
            positions.append(position)
            tile = tiles[i] if i < total else None
            if tile is not None:
                tile.position = position
                tile.extra_props["angle1"] = angle1
                tile.extra_props["angle2"] = angle2 - 180
                tile.extra_props["cangle"] = angle1
            if report and (i % interval == 0 or i == total):
                self._emit(
                    "tilePosition",
                    i,
                    total,
                    {"tileIndex": i, "tile": tile, "position": position, "angle": angle1},
                )

        if report:
            self._emit(
                "tilePosition",
                total,
                total,
                {"processed": [c for position in positions for c in position]},
            )
        return positions
