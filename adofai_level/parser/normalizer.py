import logging
from enum import Enum, auto as enum_auto

logger = logging.getLogger(__name__)

BOM = b"\xef\xbb\xbf"
COMMA = b","

_QUOTE = 0x22  # "
_BACKSLASH = 0x5C  # \
_COMMA = 0x2C  # ,
_CLOSERS = frozenset((0x5D, 0x7D))  # ] }
# tab, LF, VT, FF, CR, space
_WHITESPACE = frozenset((0x09, 0x0A, 0x0B, 0x0C, 0x0D, 0x20))


class _State(Enum):
    OTHER = enum_auto()
    IN_STRING = enum_auto()
    ESCAPE = enum_auto()
    PENDING_COMMA = enum_auto()


def strip_bom(data: bytes) -> bytes:
    if data[:3] == BOM:
        return data[3:]
    return data


def normalize_json_bytes(data: bytes) -> bytes:
    """Remove trailing commas before ``]``/``}`` from a JSON byte string.

    Commas outside strings are withheld until the next significant byte is
    seen. A closing bracket drops the withheld comma, anything else puts it
    back. String contents, including escaped quotes, are copied untouched.
    """
    builder: list[bytes] = []
    state = _State.OTHER
    start = 0
    elided = 0

    for i, byte in enumerate(data):
        if state is _State.ESCAPE:
            state = _State.IN_STRING
        elif state is _State.IN_STRING:
            if byte == _QUOTE:
                state = _State.OTHER
            elif byte == _BACKSLASH:
                state = _State.ESCAPE
        elif state is _State.OTHER:
            if byte == _QUOTE:
                state = _State.IN_STRING
            elif byte == _COMMA:
                builder.append(data[start:i])
                start = i + 1
                state = _State.PENDING_COMMA
        else:  # PENDING_COMMA
            if byte in _WHITESPACE:
                continue
            if byte == _COMMA:
                # ",," collapses into the comma already withheld
                builder.append(data[start:i])
                start = i + 1
                elided += 1
            elif byte in _CLOSERS:
                state = _State.OTHER
                elided += 1
            else:
                builder.append(COMMA)
                state = _State.IN_STRING if byte == _QUOTE else _State.OTHER

    if state is _State.PENDING_COMMA:
        elided += 1
    builder.append(data[start:])

    if elided:
        logger.debug("Elided %d trailing comma(s)", elided)
    return b"".join(builder)


def normalize_json_string(text: str) -> str:
    return normalize_json_bytes(text.encode("utf-8")).decode("utf-8")
