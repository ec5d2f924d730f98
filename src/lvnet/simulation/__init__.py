"""
Simulation Module
=================

Stochastic screening of the LV network:
- Seeded 32-bit random streams (Mulberry32, FNV-1a string seeds)
- Monte Carlo load perturbation with failure statistics
"""

from .rng import Rng, Mulberry32, fnv1a_32, seed_from_any
from .monte_carlo import DrawOutcome, run_monte_carlo, evaluate_draw, perturb_loads, clamp_iterations

__all__ = [
    "Rng",
    "Mulberry32",
    "fnv1a_32",
    "seed_from_any",
    "DrawOutcome",
    "run_monte_carlo",
    "evaluate_draw",
    "perturb_loads",
    "clamp_iterations",
]
