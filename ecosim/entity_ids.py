"""Generation-checked entity handles.

Entities live in slots of an arena owned by the EntityStore. A handle is
the pair ``(index, generation)``: the slot index plus the number of times
that slot had been freed when the handle was issued. When a slot is
reused its generation moves on, so an old handle no longer matches and
lookups report "entity gone" instead of silently resolving to whatever
now lives in the slot.

Why handles instead of object references?
-----------------------------------------
Before (object identity):
    target = creature.target          # might be a dead food object
    target.nutrition                  # reads stale data, no error

After (handles):
    food = store.get(creature.target)
    if food is None:                  # removed since last tick
        ...

Design Notes:
- Handles are immutable (frozen dataclass) and hashable
- Handles order by slot index first, so "ascending handle order" is the
  deterministic processing order used by every system
- The string form is ``#index.generation`` for log readability
"""

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class EntityHandle:
    """Stable reference to an entity slot.

    Example:
        handle = EntityHandle(3, 0)
        print(handle)  # "#3.0"
    """

    index: int
    generation: int = 0

    def __post_init__(self) -> None:
        """Validate the handle components."""
        if not isinstance(self.index, int) or not isinstance(self.generation, int):
            raise TypeError(
                f"Handle components must be int, got {type(self.index).__name__}/"
                f"{type(self.generation).__name__}"
            )
        if self.index < 0 or self.generation < 0:
            raise ValueError(f"Handle components must be non-negative, got {self!r}")

    def __str__(self) -> str:
        return f"#{self.index}.{self.generation}"
