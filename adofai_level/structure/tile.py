from dataclasses import dataclass, field
from typing import Optional

from .event import Event


@dataclass
class Tile:
    direction: float
    previous_direction: float = 0
    angle: float = 0
    twirl: int = 0
    actions: list[Event] = field(default_factory=list)
    decorations: list[Event] = field(default_factory=list)
    position: Optional[list[float]] = None
    # angle1 (outgoing), angle2 (incoming - 180), cangle
    extra_props: dict = field(default_factory=dict)

    @property
    def is_twirled(self) -> bool:
        return self.twirl % 2 == 1
