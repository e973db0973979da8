"""Perception and feeding configuration constants."""

# Distance within which a creature eats food. Smaller than any sense radius.
COLLISION_RADIUS = 2.0

# When True, feeding distance is measured along the path a creature swept
# this tick instead of only at its end position.
SWEPT_FEEDING = True

# Meals a creature may take in one tick
MAX_MEALS_PER_TICK = 1
