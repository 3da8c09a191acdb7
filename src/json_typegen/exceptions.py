"""Custom exceptions for json-typegen."""


class JsonTypegenError(Exception):
    """Base exception for json-typegen errors."""

    pass


class ParseError(JsonTypegenError):
    """Raised when the input document is not valid JSON or not a JSON object."""

    pass


class DepthExceededError(ParseError):
    """Raised when the input nests deeper than the configured limit."""

    def __init__(self, max_depth: int) -> None:
        super().__init__(f"JSON nesting exceeds the maximum depth of {max_depth}")
        self.max_depth = max_depth


class InferenceCancelledError(JsonTypegenError):
    """Raised when an inference pass is cancelled before it completes."""

    pass


class InternalInvariantViolation(JsonTypegenError):
    """Raised when the classifier meets a value no JSON parser can produce."""

    pass
