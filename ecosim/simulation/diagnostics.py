"""Simulation statistics and reporting.

SimulationStats accumulates counters as systems run. The reporting
helpers format them for the console and export them as JSON; they are
kept apart from the engine so "running the simulation" and "reporting on
the simulation" stay separate concerns.
"""

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict

import orjson

from ecosim.entities.food import FoodKind

if TYPE_CHECKING:
    from ecosim.simulation.engine import SimulationEngine

logger = logging.getLogger(__name__)


@dataclass
class SimulationStats:
    """Cumulative counters for one run.

    Attributes:
        births: Offspring created
        deaths_by_cause: Creature removals keyed by reason
        food_spawned: Food created, keyed by food kind
        food_eaten: Meals, keyed by food kind
        satiation_gained: Total satiation gained from meals
        food_spoiled: Meat removed after spoiling
        placement_exhausted: Spawns skipped for lack of a free spot
        movement_faults: Creatures held in place after a non-finite move
        entity_failures: Per-entity failures caught and logged mid-tick
    """

    births: int = 0
    deaths_by_cause: Counter = field(default_factory=Counter)
    food_spawned: Counter = field(default_factory=Counter)
    food_eaten: Counter = field(default_factory=Counter)
    satiation_gained: float = 0.0
    food_spoiled: int = 0
    placement_exhausted: int = 0
    movement_faults: int = 0
    entity_failures: int = 0

    def record_death(self, cause: str) -> None:
        self.deaths_by_cause[cause] += 1

    def record_meal(self, kind: FoodKind, gained: float) -> None:
        self.food_eaten[kind.value] += 1
        self.satiation_gained += gained

    @property
    def total_deaths(self) -> int:
        return sum(self.deaths_by_cause.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "births": self.births,
            "total_deaths": self.total_deaths,
            "death_causes": dict(self.deaths_by_cause),
            "food_spawned": dict(self.food_spawned),
            "food_eaten": dict(self.food_eaten),
            "satiation_gained": self.satiation_gained,
            "food_spoiled": self.food_spoiled,
            "placement_exhausted": self.placement_exhausted,
            "movement_faults": self.movement_faults,
            "entity_failures": self.entity_failures,
        }


def print_simulation_stats(engine: "SimulationEngine", start_time: float) -> None:
    """Log a human-readable summary of the current statistics.

    Args:
        engine: The simulation engine instance
        start_time: Wall-clock time when the run started
    """
    stats = engine.get_stats()
    elapsed = time.time() - start_time
    sep = "-" * engine.config.world.separator_width

    logger.info(sep)
    logger.info(
        "Tick: %d | Sim time: %.1f | Wall: %.1fs | TPS: %.1f",
        stats["tick"],
        stats["time"],
        elapsed,
        stats["tick"] / elapsed if elapsed > 0 else 0.0,
    )
    logger.info(sep)
    logger.info("Creatures/Food:  %d / %d", stats["creature_count"], stats["food_count"])
    logger.info("Births:          %d", stats["births"])

    deaths = stats.get("death_causes", {})
    if deaths:
        causes = ", ".join(f"{k}: {v}" for k, v in sorted(deaths.items()))
        logger.info("Deaths (%d):     %s", stats["total_deaths"], causes)

    eaten = stats.get("food_eaten", {})
    if eaten:
        logger.info("Food eaten:      %s", ", ".join(f"{k}: {v}" for k, v in sorted(eaten.items())))

    traits = stats.get("mean_traits", {})
    if traits:
        logger.info("Mean traits:     %s", ", ".join(f"{k}={v:.2f}" for k, v in traits.items()))

    if stats.get("placement_exhausted"):
        logger.info("Spawn skips:     %d", stats["placement_exhausted"])
    logger.info(sep)


def export_stats_json(engine: "SimulationEngine", filename: str, start_time: float) -> None:
    """Write the current statistics to ``filename`` as JSON.

    Args:
        engine: The simulation engine instance
        filename: Output filename
        start_time: Wall-clock time when the run started
    """
    stats = engine.get_stats()
    stats["elapsed_time"] = time.time() - start_time

    try:
        with open(filename, "wb") as f:
            f.write(orjson.dumps(stats, option=orjson.OPT_INDENT_2))
        logger.info("Exported stats to %s", filename)
    except OSError as e:
        logger.error("Failed to export stats: %s", e)
