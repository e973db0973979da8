"""Food spawning and nutrition configuration constants."""

from enum import Enum


class PlacementRule(Enum):
    """Where the food spawner places new food."""

    UNIFORM = "uniform"  # uniform-random within world bounds
    LOW_DENSITY = "low_density"  # best of several candidates by local food count


# Initial food counts
INITIAL_PLANTS = 40
INITIAL_MEAT = 0

# Spawn rates in entities per tick. Fractional rates accumulate, so 0.25
# spawns one item every fourth tick.
PLANT_SPAWN_RATE = 0.5
MEAT_SPAWN_RATE = 0.05

# Nutrition ranges (min, max) granted by each food kind
PLANT_NUTRITION_RANGE = (10.0, 25.0)
MEAT_NUTRITION_RANGE = (30.0, 60.0)

# Meat loses this much nutrition per unit time; spoiled meat is removed
MEAT_SPOIL_RATE = 0.05

# Hard cap on the number of food entities alive at once (0 = no cap)
MAX_FOOD = 300

# Placement retries before a spawn is skipped for the tick
MAX_PLACEMENT_ATTEMPTS = 10

# Candidates compared by the low-density placement rule
LOW_DENSITY_CANDIDATES = 4
LOW_DENSITY_RADIUS = 40.0

PLACEMENT_RULE = PlacementRule.UNIFORM
