"""
Result: an explicit success-or-failure value for model-backed paths.

The model path of a stage returns Result[T]; the stage then falls back with
`result.or_else(fallback)`, so the fallback contract is visible in the
signature instead of hidden in a try/except.
"""

from typing import Callable, Generic, Optional, TypeVar

from action_kernel.errors import ProviderError

T = TypeVar("T")


class Result(Generic[T]):
    """Holds either a value or the ProviderError that prevented one."""

    def __init__(self, value: Optional[T] = None, error: Optional[ProviderError] = None):
        if (value is None) == (error is None):
            raise ValueError("Result needs exactly one of value or error")
        self.value = value
        self.error = error

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: ProviderError) -> "Result[T]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def or_else(self, fallback: Callable[[ProviderError], T]) -> T:
        """Return the value, or compute one from the error."""
        if self.error is None:
            return self.value
        return fallback(self.error)
