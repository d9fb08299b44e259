"""
Result pattern for explicit error handling.

Operations that can fail for expected reasons (a remote calculation that
times out, a calculation request that cannot be validated) return either a
Success or a Failure instead of raising.

Example:
    >>> def fetch_total(ok: bool) -> Result[int, str]:
    ...     if not ok:
    ...         return Failure("remote calculation unavailable")
    ...     return Success(950000)
    ...
    >>> result = fetch_total(True)
    >>> result.unwrap() if result.is_success() else result.error
    950000
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Never

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True, slots=True)
class Success[T]:
    """Successful outcome carrying a value."""

    value: T

    def is_success(self) -> bool:
        """Return True."""
        return True

    def is_failure(self) -> bool:
        """Return False."""
        return False

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value

    def unwrap_or(self, _default: T) -> T:
        """Return the contained value, ignoring the default."""
        return self.value

    def map[U](self, func: Callable[[T], U]) -> Success[U]:
        """Return a new Success holding func(value)."""
        return Success(func(self.value))


@dataclass(frozen=True, slots=True)
class Failure[E]:
    """Failed outcome carrying an error."""

    error: E

    def is_success(self) -> bool:
        """Return False."""
        return False

    def is_failure(self) -> bool:
        """Return True."""
        return True

    def unwrap(self) -> Never:
        """Raise ValueError carrying the error."""
        raise ValueError(f"Cannot unwrap Failure: {self.error}")

    def unwrap_or[T](self, default: T) -> T:
        """Return the supplied default."""
        return default

    def map[T, U](self, _func: Callable[[T], U]) -> Failure[E]:
        """Return self; failures are not transformed."""
        return self


type Result[T, E] = Success[T] | Failure[E]


def success[T](value: T) -> Success[T]:
    """Wrap a value in Success."""
    return Success(value)


def failure[E](error: E) -> Failure[E]:
    """Wrap an error in Failure."""
    return Failure(error)
