class DictationError(Exception):
    """Base class for errors raised by the dictation core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(DictationError):
    """Bad caller input: empty pool, unknown word id, malformed snapshot."""


class StateViolationError(DictationError):
    """Operation not allowed in the engine's current state."""
