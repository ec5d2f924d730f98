"""
Calculation Engine
==================

Steady-state LV network calculation:
- Bottom-up load accumulation with diversity
- Top-down voltage drop (method of moments), losses and solar rise
- KPI and sustainability aggregation
"""

from .calculate import calculate
from .loads import LoadFlow, accumulate_loads
from .physics import SegmentPhysics, compute_physics, kva_to_amps

__all__ = [
    "calculate",
    "LoadFlow",
    "accumulate_loads",
    "SegmentPhysics",
    "compute_physics",
    "kva_to_amps",
]
