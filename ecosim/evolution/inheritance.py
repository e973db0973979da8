"""Inheritance of creature attributes from two parents.

Inheritance is pluggable: the reproduction system calls an
InheritanceStrategy and gets back the offspring's CreatureAttributes.
Strategies must be deterministic given the RNG they are handed.

Strategies:
- BlendInheritance (default): parents' mean, perturbed by a bounded
  multiplicative factor, clamped into the trait range
- GaussianInheritance: weighted blend with an occasional Gaussian jump
"""

import random
from typing import Dict, Mapping, Optional, Protocol, Tuple, runtime_checkable

from ecosim.entities.creature import HERITABLE_TRAITS, CreatureAttributes
from ecosim.evolution.mutation import bounded_perturbation, clamp, mutate_continuous_trait
from ecosim.util.rng import require_rng_param

TraitRanges = Mapping[str, Tuple[float, float]]


@runtime_checkable
class InheritanceStrategy(Protocol):
    """Combines two parents' attributes into an offspring's."""

    def inherit(
        self,
        parent_a: CreatureAttributes,
        parent_b: CreatureAttributes,
        mutation_rate: float,
        rng: random.Random,
    ) -> CreatureAttributes:
        ...


def inherit_trait(
    val1: float,
    val2: float,
    min_val: float,
    max_val: float,
    weight1: float = 0.5,
    mutation_rate: float = 0.1,
    mutation_strength: float = 0.1,
    rng: Optional[random.Random] = None,
) -> float:
    """Inherit a continuous trait from two parents.

    Combines weighted blending with Gaussian mutation.

    Args:
        val1: First parent's value
        val2: Second parent's value
        min_val: Minimum allowed value
        max_val: Maximum allowed value
        weight1: Weight for first parent (0.0-1.0)
        mutation_rate: Probability of mutation
        mutation_strength: Magnitude of mutation
        rng: Random number generator

    Returns:
        Inherited value with possible mutation
    """
    rng = require_rng_param(rng, "inherit_trait")
    inherited = val1 * weight1 + val2 * (1.0 - weight1)
    return mutate_continuous_trait(inherited, min_val, max_val, mutation_rate, mutation_strength, rng)


def _child_attributes(max_satiation: float, traits: Dict[str, float]) -> CreatureAttributes:
    traits["hunger_threshold"] = min(traits["hunger_threshold"], max_satiation)
    return CreatureAttributes(max_satiation=max_satiation, **traits)


class BlendInheritance:
    """Mean of the parents with a bounded perturbation.

    For each heritable trait and for max satiation the child gets
    ``mean * (1 + u * rate)`` with ``u`` uniform in [-1, 1], clamped into
    the trait range. So ``|child - mean| <= rate * mean`` always holds,
    and a rate of 0 yields exactly the mean.
    """

    def __init__(self, trait_ranges: Optional[TraitRanges] = None) -> None:
        self.trait_ranges = dict(trait_ranges) if trait_ranges else {}

    def inherit(self, parent_a, parent_b, mutation_rate, rng=None) -> CreatureAttributes:
        rng = require_rng_param(rng, "BlendInheritance.inherit")
        traits: Dict[str, float] = {}
        for name in HERITABLE_TRAITS + ("max_satiation",):
            mean = (getattr(parent_a, name) + getattr(parent_b, name)) / 2.0
            value = bounded_perturbation(mean, mutation_rate, rng)
            traits[name] = clamp(value, self.trait_ranges.get(name))
        max_satiation = traits.pop("max_satiation")
        return _child_attributes(max_satiation, traits)


class GaussianInheritance:
    """Randomly weighted blend, then a Gaussian jump with probability ``mutation_rate``.

    Traits without a configured range are left unmutated.
    """

    def __init__(self, trait_ranges: Optional[TraitRanges] = None, mutation_strength: float = 0.06):
        self.trait_ranges = dict(trait_ranges) if trait_ranges else {}
        self.mutation_strength = mutation_strength

    def inherit(self, parent_a, parent_b, mutation_rate, rng=None) -> CreatureAttributes:
        rng = require_rng_param(rng, "GaussianInheritance.inherit")
        weight = rng.random()
        traits: Dict[str, float] = {}
        for name in HERITABLE_TRAITS + ("max_satiation",):
            a = getattr(parent_a, name)
            b = getattr(parent_b, name)
            bounds = self.trait_ranges.get(name)
            if bounds is None:
                traits[name] = a * weight + b * (1.0 - weight)
                continue
            traits[name] = inherit_trait(
                a,
                b,
                bounds[0],
                bounds[1],
                weight1=weight,
                mutation_rate=mutation_rate,
                mutation_strength=self.mutation_strength,
                rng=rng,
            )
        max_satiation = traits.pop("max_satiation")
        return _child_attributes(max_satiation, traits)
