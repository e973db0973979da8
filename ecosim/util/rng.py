"""RNG utilities for deterministic simulation.

This module provides utilities for accessing RNGs in a way that
fails loudly if a deterministic RNG is not available, rather than
silently creating an unseeded fallback.
"""

import random
from typing import Optional

from ecosim.exceptions import SimulationError


class MissingRNGError(SimulationError):
    """Raised when an RNG is required but not available.

    This indicates a bug in the simulation setup: every system and
    strategy should receive the engine's RNG explicitly.
    """


def require_rng_param(rng: Optional[random.Random], context: str) -> random.Random:
    """Validate that an RNG parameter was provided, failing loudly if not.

    Args:
        rng: The RNG that should have been provided
        context: Description of where this is called from (for error messages)

    Returns:
        The validated RNG

    Raises:
        MissingRNGError: If rng is None

    Example:
        def inherit(self, a, b, mutation_rate, rng=None):
            rng = require_rng_param(rng, "BlendInheritance.inherit")
    """
    if rng is None:
        raise MissingRNGError(f"RNG required: {context}. Pass the engine RNG explicitly.")
    return rng


def derive_rng(rng: random.Random, salt: int) -> random.Random:
    """Create an independent child RNG whose seed is drawn from a parent RNG.

    Used to give parallel read phases their own streams so results do not
    depend on thread scheduling.
    """
    return random.Random(rng.getrandbits(64) ^ salt)
