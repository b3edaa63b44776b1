from .normalizer import strip_bom, normalize_json_bytes, normalize_json_string
from .codec import decode, encode, encode_bytes, format_level, parse
