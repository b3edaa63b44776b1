import json
import math

import numpy as np


class LevelJSONEncoder(json.JSONEncoder):
    """Encodes numpy scalars and arrays produced by the lightweight layout."""

    def default(self, o):
        if isinstance(o, np.ndarray):
            return o.tolist()
        if isinstance(o, np.bool_):
            return bool(o)
        if isinstance(o, np.integer):
            return int(o)
        if isinstance(o, np.floating):
            return float(o)
        return super().default(o)


def round_half_up(value: float) -> int:
    # halves round up, unlike round()
    return math.floor(value + 0.5)
