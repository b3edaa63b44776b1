class LevelError(Exception):
    pass


class StructuralParseError(LevelError, ValueError):
    """Raised when a level file is still invalid JSON after normalization."""

    def __init__(self, msg: str, pos: int, lineno: int, colno: int):
        self.msg = msg
        self.pos = pos
        self.lineno = lineno
        self.colno = colno
        super().__init__(f"{msg}: line {lineno} column {colno} (char {pos})")


class ValidationError(LevelError):
    def __init__(self, data, error_message: str):
        self.data = data
        self.error_message = error_message
        super().__init__(f"Invalid level data. Error: {self.error_message}")


class OptionTypeError(LevelError, TypeError):
    def __init__(self, options):
        self.options = options
        super().__init__(
            f"Options must be str, bytes or dict, got {type(options).__name__}"
        )
