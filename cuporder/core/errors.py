"""Exceptions raised by the core order workflow and its collaborators.

Insufficient stock at check time is not an error: it is reported as an
OrderCreationResult with STOCK_EXCEEDED. The exceptions here cover invalid
input and collaborator failures.
"""

from typing import Any


class ArgumentError(ValueError):
    """An argument passed to a core operation was rejected.

    Attributes:
        param_name: Name of the offending parameter.
    """

    def __init__(self, param_name: str, message: str | None = None):
        self.param_name = param_name
        super().__init__(message or f"Invalid value for parameter '{param_name}'")


class ArgumentMissingError(ArgumentError):
    """A required argument was None."""

    def __init__(self, param_name: str):
        super().__init__(param_name, f"Parameter '{param_name}' must not be None")


class ArgumentOutOfRangeError(ArgumentError):
    """An argument was outside its permitted range."""

    def __init__(self, param_name: str, value: Any, message: str | None = None):
        self.value = value
        super().__init__(
            param_name,
            message or f"Parameter '{param_name}' is out of range: {value!r}",
        )


class StockExhaustedError(Exception):
    """A stock source could not allocate the requested number of cups.

    Raised by StockSourcePort implementations when stock changed between
    the count check and the allocation.
    """

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Cannot allocate {requested} cups, only {available} in stock"
        )


__all__ = [
    "ArgumentError",
    "ArgumentMissingError",
    "ArgumentOutOfRangeError",
    "StockExhaustedError",
]
