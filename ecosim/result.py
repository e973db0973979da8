"""Result type for operations whose failure is an expected outcome.

Soft failures such as "no free spot for this food item" are not bugs and
should not unwind the tick. Operations like that return a Result the
caller must check instead of raising.

Usage:
------
    result = spawner.find_position()
    if result.is_ok():
        store.create(EntityKind.FOOD, attrs, result.unwrap())
    else:
        logger.debug("skipped: %s", result.error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A successful outcome carrying a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    @property
    def error(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True)
class Err(Generic[E]):
    """A failed outcome carrying the error (usually an exception instance)."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self):
        """Raise the carried error if it is an exception, else ValueError."""
        if isinstance(self.error, BaseException):
            raise self.error
        raise ValueError(f"Called unwrap on Err: {self.error}")

    @property
    def value(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Union[Ok[T], Err[E]]
