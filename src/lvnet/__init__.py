"""
LV Network Engine
=================

Load flow, voltage drop and loss calculation for radial low-voltage
distribution networks fed by a transformer.

Architecture:
- topology/: Tree construction, validation and diversity factors
- engine/: Bottom-up load accumulation, top-down segment physics, KPIs
- optimization/: Automatic cable upgrade search
- simulation/: Seeded Monte Carlo risk analysis
- cli: Command-line runner for JSON case files
"""

from .models import (
    LoadData,
    NetworkNode,
    CableSpec,
    ProjectParams,
    ComputedNode,
    EngineResult,
    MonteCarloResult,
)
from .catalogs import DEFAULT_CABLES, IP_TYPES, DMDI_TABLES, LOAD_PROFILES, ROOT_ID
from .topology import TopologyError, MissingRootError, CyclicTopologyError, DuplicateNodeError
from .engine import calculate
from .optimization import optimize
from .simulation import run_monte_carlo

__version__ = "1.0.0"

__all__ = [
    "LoadData",
    "NetworkNode",
    "CableSpec",
    "ProjectParams",
    "ComputedNode",
    "EngineResult",
    "MonteCarloResult",
    "DEFAULT_CABLES",
    "IP_TYPES",
    "DMDI_TABLES",
    "LOAD_PROFILES",
    "ROOT_ID",
    "TopologyError",
    "MissingRootError",
    "CyclicTopologyError",
    "DuplicateNodeError",
    "calculate",
    "optimize",
    "run_monte_carlo",
]
