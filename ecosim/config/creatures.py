"""Creature trait and metabolism configuration constants."""

# Initial population
INITIAL_CREATURES = 20

# Satiation scale shared by every creature
MAX_SATIATION = 100.0
INITIAL_SATIATION_FRACTION = 0.8

# Valid ranges (min, max) for heritable traits and max satiation. Creation
# rejects values outside these ranges; inheritance clamps into them.
TRAIT_RANGES = {
    "speed": (0.1, 20.0),
    "strength": (0.1, 10.0),
    "sense_radius": (5.0, 150.0),
    "dexterity": (0.05, 10.0),
    "hunger_threshold": (0.0, MAX_SATIATION),
    "metabolism": (0.1, 5.0),
    "max_satiation": (MAX_SATIATION * 0.5, MAX_SATIATION * 2.0),
}

# Ranges (min, max) sampled for the initial population
INITIAL_TRAIT_RANGES = {
    "speed": (2.0, 6.0),
    "strength": (0.5, 2.0),
    "sense_radius": (30.0, 60.0),
    "dexterity": (0.5, 2.0),
    "hunger_threshold": (25.0, 75.0),
    "metabolism": (0.8, 1.2),
}

# Satiation decay per unit time, scaled by the creature's metabolism
BASE_SATIATION_DECAY = 0.1

# Extra decay per unit time proportional to the squared speed actually moved
MOVEMENT_COST = 0.002

# Random walk parameters for the wander intent
WANDER_MIN_DISTANCE = 10.0
WANDER_MAX_DISTANCE = 80.0
WANDER_CONE_RADIANS = 0.5235987755982988  # pi / 6

# Distance at which a movement target counts as reached
ARRIVAL_RADIUS = 5.0

# Distance over which a steering creature eases off its top speed
SLOWING_RADIUS = 23.0
