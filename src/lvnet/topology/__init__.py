"""
Topology Layer
==============

Structural modeling of the radial LV network:
- Arena tree built from parent references
- Root, orphan and cycle validation
- Diversity factor lookup for residential demand
"""

from .tree import (
    NetworkTree,
    TopologyError,
    MissingRootError,
    CyclicTopologyError,
    DuplicateNodeError,
    build_tree,
)
from .diversity import count_residential, resolve_diversity_factor

__all__ = [
    "NetworkTree",
    "TopologyError",
    "MissingRootError",
    "CyclicTopologyError",
    "DuplicateNodeError",
    "build_tree",
    "count_residential",
    "resolve_diversity_factor",
]
