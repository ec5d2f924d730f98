"""
Segment Physics
===============

Top-down pass from the transformer: voltage drop by the method of
moments, Joule losses, solar voltage rise and reverse daytime flow.

Each non-root node owns the segment that feeds it; the segment's cable
and span length scale every per-segment quantity.
"""

from dataclasses import dataclass, field
import math
from typing import List, Mapping, Optional, Tuple

from ..models import CableSpec
from ..topology.tree import NetworkTree
from .loads import LoadFlow

NOMINAL_KV = 0.380
SQRT3 = math.sqrt(3.0)

# Share of the peak demand present at midday, when solar peaks
DAY_LOAD_FACTOR = 0.30

# Reverse currents above this magnitude (A) count toward the network maximum
REVERSE_CURRENT_NOISE_A = 0.1


def kva_to_amps(kva: float) -> float:
    """Three-phase line current at the nominal LV voltage."""
    return kva / (SQRT3 * NOMINAL_KV)


@dataclass
class SegmentPhysics:
    """
    Per-node physical results, indexed like the tree arena.

    Attributes:
        load_amps: Current through the incoming segment (root: transformer current)
        drop_pct: Accumulated voltage drop from the transformer (%)
        rise_pct: Accumulated solar voltage rise (%)
        loss_watts: Joule loss on the incoming segment (W)
        net_day_amps: Net midday current (negative = reverse flow)
        total_loss_watts: Network Joule loss (W)
        max_rise_pct: Largest accumulated rise (%)
        max_reverse_amps: Largest reverse current magnitude (A)
        warnings: Advisory messages (overloads, unknown cables)
    """
    load_amps: List[float]
    drop_pct: List[float]
    rise_pct: List[float]
    loss_watts: List[float]
    net_day_amps: List[float]
    total_loss_watts: float = 0.0
    max_rise_pct: float = 0.0
    max_reverse_amps: float = 0.0
    warnings: List[str] = field(default_factory=list)


def _segment_cable(cable_id: str, catalog: Mapping[str, CableSpec]) -> Tuple[CableSpec, Optional[str]]:
    """Resolve a cable, falling back to the first catalog entry."""
    spec = catalog.get(cable_id)
    if spec is not None:
        return spec, None
    if not catalog:
        raise ValueError("Cable catalog is empty; cannot evaluate network segments")
    fallback_id = next(iter(catalog))
    return catalog[fallback_id], fallback_id


def compute_physics(
    tree: NetworkTree,
    flow: LoadFlow,
    cables: Mapping[str, CableSpec],
    include_gd_in_qt: bool = False,
) -> SegmentPhysics:
    """
    Propagate drop and rise from the root down to every reachable node.

    Args:
        tree: Validated network tree
        flow: Result of the bottom-up load pass
        cables: Cable catalog by id
        include_gd_in_qt: Offset half of local solar against the
            distributed load in the drop moment

    Returns:
        SegmentPhysics with per-node and network figures
    """
    n = len(tree)
    phys = SegmentPhysics(
        load_amps=[0.0] * n,
        drop_pct=[0.0] * n,
        rise_pct=[0.0] * n,
        loss_watts=[0.0] * n,
        net_day_amps=[0.0] * n,
    )

    for i in tree.order:
        amps = kva_to_amps(flow.subtree_total_kva[i])
        phys.load_amps[i] = amps
        if i == tree.root:
            continue

        node = tree.nodes[i]
        p = tree.parent[i]
        cable, fallback_id = _segment_cable(node.cable_id, cables)
        if fallback_id is not None:
            phys.warnings.append(
                f"Unknown cable '{node.cable_id}' at {node.id}; using '{fallback_id}'."
            )
        dist_hm = node.length_meters / 100.0
        dist_km = node.length_meters / 1000.0

        # Method of moments: through-flow and concentrated load at the far end,
        # distributed load spread uniformly over the span.
        distributed = flow.distributed_kva[i]
        if include_gd_in_qt:
            distributed = max(0.0, distributed - flow.solar_kva[i] * 0.5)
        through = flow.subtree_total_kva[i] - flow.local_kva(i)
        moment_kva = (through + flow.concentrated_kva[i]) + distributed * 0.5
        phys.drop_pct[i] = phys.drop_pct[p] + moment_kva * dist_hm * cable.coef

        # Worst case for rise: reverse flow concentrated at the far end
        net_day_kva = flow.subtree_total_kva[i] * DAY_LOAD_FACTOR - flow.subtree_solar_kva[i]
        segment_rise = abs(min(0.0, net_day_kva)) * dist_hm * cable.coef
        phys.rise_pct[i] = phys.rise_pct[p] + segment_rise
        phys.net_day_amps[i] = kva_to_amps(net_day_kva)
        if phys.net_day_amps[i] < -REVERSE_CURRENT_NOISE_A:
            phys.max_reverse_amps = max(phys.max_reverse_amps, abs(phys.net_day_amps[i]))
        phys.max_rise_pct = max(phys.max_rise_pct, phys.rise_pct[i])

        loss = 3 * (cable.r * dist_km) * max(0.0, amps) ** 2
        phys.loss_watts[i] = loss
        phys.total_loss_watts += loss

        if cable.ampacity > 0 and amps > cable.ampacity:
            phys.warnings.append(
                f"Overload at {node.id}: {amps:.2f} A exceeds cable ampacity {cable.ampacity:g} A."
            )

    return phys
