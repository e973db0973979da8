"""Ecosim exception hierarchy.

Centralised base classes so callers can catch narrowly and failures
are easier to diagnose. None of these is fatal to a running simulation:
the engine recovers from them per entity.
"""


class EcosimError(Exception):
    """Root of all ecosim domain exceptions."""


class SimulationError(EcosimError):
    """Errors during simulation execution (engine, systems, entities)."""


class EntityError(SimulationError):
    """An entity-level failure (lookup, lifecycle, movement)."""


class StaleHandleError(EntityError):
    """A handle's generation no longer matches its slot.

    The entity it referred to has been removed. Treat it as "entity gone".
    """

    def __init__(self, handle: object) -> None:
        super().__init__(f"Stale or unknown entity handle: {handle}")
        self.handle = handle


class InvalidAttributeError(EntityError):
    """An attribute is outside its valid range at entity creation time."""

    def __init__(self, name: str, value: object, reason: str) -> None:
        super().__init__(f"Invalid attribute {name}={value!r}: {reason}")
        self.name = name
        self.value = value
        self.reason = reason


class SpawnPlacementExhausted(SimulationError):
    """No valid food position was found within the attempt limit."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"No valid spawn position after {attempts} attempts")
        self.attempts = attempts


class ConfigurationError(EcosimError):
    """Invalid or missing configuration."""
