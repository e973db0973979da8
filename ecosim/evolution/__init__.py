"""Trait inheritance and mutation for offspring."""

from ecosim.evolution.inheritance import (
    BlendInheritance,
    GaussianInheritance,
    InheritanceStrategy,
    inherit_trait,
)
from ecosim.evolution.mutation import bounded_perturbation, mutate_continuous_trait

__all__ = [
    "BlendInheritance",
    "GaussianInheritance",
    "InheritanceStrategy",
    "bounded_perturbation",
    "inherit_trait",
    "mutate_continuous_trait",
]
