"""Explicit success/failure values for callers that prefer them to exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from .exceptions import RlnError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of one protocol call.

    Exactly one of ``value`` / ``error`` is meaningful: ``value`` when
    ``ok`` is True, ``error`` otherwise.
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[RlnError] = None

    def __post_init__(self):
        if self.ok and self.error is not None:
            raise ValueError("error must be empty when ok=True")
        if not self.ok and self.error is None:
            raise ValueError("error required when ok=False")

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(True, value, None)

    @classmethod
    def failure(cls, error: RlnError) -> "Result[T]":
        return cls(False, None, error)

    def unwrap(self) -> T:
        """Return the value, or raise the captured error."""
        if not self.ok:
            raise self.error
        return self.value


def capture(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Result[T]:
    """
    Call ``fn`` and wrap its outcome.

    Only protocol errors (RlnError) become failed results; anything else is
    a bug and propagates.

    Example:
        >>> result = capture(registry.add_member, commitment)
        >>> if not result.ok:
        ...     print(result.error)
    """
    try:
        return Result.success(fn(*args, **kwargs))
    except RlnError as exc:
        return Result.failure(exc)
