"""Mutation operations for inherited traits.

Two flavours are provided:
- Bounded multiplicative perturbation: ``value * (1 + u * rate)`` with
  ``u`` uniform in [-1, 1]. The result never strays more than
  ``rate * |value|`` from the input, and a rate of 0 returns the input
  unchanged.
- Gaussian perturbation applied with a given probability, for strategies
  that prefer occasional larger jumps.

Every function takes the RNG explicitly; there is no module-level fallback.
"""

import random
from typing import Optional, Tuple

from ecosim.util.rng import require_rng_param


def clamp(value: float, bounds: Optional[Tuple[float, float]]) -> float:
    if bounds is None:
        return value
    lo, hi = bounds
    return max(lo, min(hi, value))


def bounded_perturbation(
    value: float,
    mutation_rate: float,
    rng: Optional[random.Random] = None,
) -> float:
    """Scale ``value`` by a random factor in ``[1 - rate, 1 + rate]``.

    One uniform draw is consumed even when ``mutation_rate`` is 0, so the
    RNG stream does not depend on the rate.
    """
    rng = require_rng_param(rng, "bounded_perturbation")
    u = rng.uniform(-1.0, 1.0)
    return value * (1.0 + u * mutation_rate)


def mutate_continuous_trait(
    value: float,
    min_val: float,
    max_val: float,
    mutation_rate: float,
    mutation_strength: float,
    rng: Optional[random.Random] = None,
) -> float:
    """Mutate a continuous trait value with Gaussian noise.

    Args:
        value: Current trait value
        min_val: Minimum allowed value
        max_val: Maximum allowed value
        mutation_rate: Probability of mutation (0.0-1.0)
        mutation_strength: Standard deviation of the noise as a fraction
            of the trait range
        rng: Random number generator

    Returns:
        Mutated value, clamped to [min_val, max_val]
    """
    rng = require_rng_param(rng, "mutate_continuous_trait")
    if rng.random() < mutation_rate:
        value += rng.gauss(0.0, mutation_strength * (max_val - min_val))
    return max(min_val, min(max_val, value))
