import json
from typing import Any, Union

from ..errors import StructuralParseError
from ..utils import LevelJSONEncoder
from .normalizer import BOM, normalize_json_bytes, strip_bom


def decode(data: Union[str, bytes, bytearray, memoryview]) -> Any:
    """Decode a level file, tolerating a leading BOM and trailing commas.

    :raises StructuralParseError: if the normalized text is still not JSON.
    """
    if isinstance(data, str):
        data = data.encode("utf-8", "surrogatepass")
    elif isinstance(data, memoryview):
        data = data.tobytes()
    text = normalize_json_bytes(strip_bom(bytes(data))).decode("utf-8", "replace")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise StructuralParseError(e.msg, e.pos, e.lineno, e.colno) from e


def encode(obj: Any, indent: Union[int, str, None] = None) -> str:
    return json.dumps(obj, indent=indent, ensure_ascii=False, cls=LevelJSONEncoder)


def encode_bytes(obj: Any, bom: bool = True) -> bytes:
    data = encode(obj).encode("utf-8")
    return BOM + data if bom else data


def format_level(
    raw: dict,
    indent: int = 0,
    use_game_style: bool = True,
    indent_char: str = "\t",
    indent_step: int = 1,
) -> str:
    """Fallback formatter for ``Level.export(as_text=True)``.

    Writes plain indented JSON. ``use_game_style`` is accepted so any
    external formatter can be swapped in, but the game's one-event-per-line
    layout is not reproduced here.
    """
    step = indent_char * indent_step
    text = encode(raw, indent=step if step else None)
    if indent <= 0:
        return text
    prefix = step * indent
    return "\n".join(prefix + line for line in text.splitlines())


def parse(text: str) -> Any:
    """Default parse provider used by ``Level`` for text options."""
    return decode(text)
