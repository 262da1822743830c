from typing import Any


class MarrakeshError(Exception):
    """Base class for all Marrakesh errors."""

class APIKeyNotFoundError(MarrakeshError):
    """Error raised when an API key is not found."""

class ConfigurationError(MarrakeshError, ValueError):
    """Error raised when a test suite is not properly configured (e.g. no executors)."""

class ModelResponseError(MarrakeshError):
    """Error raised when a model provider returns a response we cannot interpret."""

class MatchError(MarrakeshError, AssertionError):
    """Error raised when an assertion on a model output fails."""

    def __init__(self, message: str, expected: Any = None, actual: Any = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual
