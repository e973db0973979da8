"""Continuous-space ecosystem simulator.

Creatures move through a 2D world, sense and eat food, and reproduce with
inherited, mutated traits. Key modules:

- simulation: The tick loop (ecosim.simulation.engine) and entity store
- spatial: World bounds and the uniform-grid proximity index
- entities: Creatures, food and perception records
- systems: One system per step of the tick
- evolution: Inheritance strategies and mutation operators

Design note: this module exposes a small, explicit public API via ``__all__``.
Import from subpackages for everything else.
"""

from ecosim.config.simulation_config import SimulationConfig
from ecosim.simulation import SimulationEngine
from ecosim.snapshots import WorldSnapshot

__version__ = "0.1.0"

__all__ = [
    "SimulationConfig",
    "SimulationEngine",
    "WorldSnapshot",
    "__version__",
]
