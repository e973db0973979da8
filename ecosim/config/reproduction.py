"""Reproduction and inheritance configuration constants."""

REPRODUCTION_ENABLED = True

# Both parents must have at least this fraction of max satiation
REPRODUCTION_SATIATION_FRACTION = 0.7

# Satiation each parent transfers to the offspring. A parent must hold more
# than this, and it must stay below the breeding threshold.
REPRODUCTION_COST = 25.0

# Parents must be at most this far apart (and perceive each other)
MATING_RADIUS = 10.0

# Ticks a creature waits between matings
REPRODUCTION_COOLDOWN = 50

# Bounded perturbation scale used by the default inheritance strategy
MUTATION_RATE = 0.1

# Offspring scatter around the parents' midpoint
OFFSPRING_JITTER = 2.0

# Population cap for creatures (0 = no cap)
MAX_CREATURES = 200
