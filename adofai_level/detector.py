import os
from typing import IO, Literal, Union

from .errors import StructuralParseError
from .parser.codec import decode


def detect(
    data: Union[os.PathLike, IO[bytes], bytes, bytearray, memoryview, dict],
) -> Literal["angleData", "pathData"] | None:
    """Parse the data and determine which angle source the level carries

    :returns: ``"pathData"`` or ``"angleData"`` if it is a level file, else ``None``.
    """
    if isinstance(data, os.PathLike):
        with open(data, "rb") as f:
            data = f.read()
    elif hasattr(data, "read"):
        data = data.read()

    if not isinstance(data, dict):
        try:
            data = decode(data)
        except StructuralParseError:
            return
    if not isinstance(data, dict) or "settings" not in data:
        return
    if isinstance(data.get("pathData"), str):
        return "pathData"
    if isinstance(data.get("angleData"), list):
        return "angleData"
    return None
