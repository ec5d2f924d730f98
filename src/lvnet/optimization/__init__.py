"""
Optimization Module
===================

Automatic cable sizing by iterative upgrade:
- Ampacity, voltage drop and solar rise screening per segment
- Next-size-up moves over a catalog ranked by ampacity
"""

from .cables import MAX_OPTIMIZER_ITERATIONS, cables_by_ampacity, optimize, segment_violations

__all__ = ["MAX_OPTIMIZER_ITERATIONS", "cables_by_ampacity", "optimize", "segment_violations"]
