# backend/services/outcome.py
"""
Result of a best-effort step.

Optional sub-steps (ATS scoring while generating, file cleanup while
deleting) report failure through this type instead of raising, so callers
can see and test that the failure was absorbed.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class SoftResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: T) -> T:
        return self.value if self.ok and self.value is not None else default

    @classmethod
    def success(cls, value: Optional[T] = None) -> "SoftResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "SoftResult[T]":
        return cls(error=error)
