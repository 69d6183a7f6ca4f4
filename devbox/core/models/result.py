"""
Result — typed outcome for best-effort operations.

Replaces the shell habit of ``cmd || true``: a probe or remote query
returns a Result, and the caller decides whether a failure is logged
and skipped or propagated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a recoverable error message."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> Result[T]:
        return cls(error=error or "unknown error")

    def unwrap_or(self, default: T) -> T:
        """Return the value, or *default* when this is a failure."""
        if self.ok and self.value is not None:
            return self.value
        return default
