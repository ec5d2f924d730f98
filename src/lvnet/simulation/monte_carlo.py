"""
Monte Carlo Risk Simulation
===========================

Repeats the calculate pass under uncertain loads to estimate how often
the network breaks its limits.

Per iteration every node's loads are perturbed uniformly:
- Residential connections: +/-15 %
- Public lighting and point-load counts: +/-20 %
- Point-load kVA: +/-25 %
- Solar clients and kVA: +/-30 %

A failed iteration has its peak voltage drop above the profile ceiling,
an overloaded cable, or solar rise above 5 %.

The topology is validated once; each draw reruns only the load and
physics passes over the perturbed loads.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
import logging
import math
from typing import Any, List, Mapping, Optional, Sequence

import numpy as np

from ..catalogs import MAX_SOLAR_RISE_PCT, get_load_profile
from ..engine.loads import accumulate_loads
from ..engine.physics import SegmentPhysics, compute_physics
from ..models import (
    CableSpec,
    HistogramBin,
    LoadData,
    MonteCarloResult,
    NetworkNode,
    ProjectParams,
    coerce_cables,
    coerce_nodes,
    coerce_params,
)
from ..topology.diversity import count_residential, resolve_diversity_factor
from ..topology.tree import NetworkTree, build_tree
from .rng import Mulberry32, Rng, seed_from_any

logger = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 1000
MIN_ITERATIONS = 10
MAX_ITERATIONS = 20000
HISTOGRAM_BINS = 20

RESIDENTIAL_SPREAD = 0.15
COUNT_SPREAD = 0.20
POINT_KVA_SPREAD = 0.25
SOLAR_SPREAD = 0.30

_CENTS = Decimal("0.01")


def clamp_iterations(iterations: Optional[float]) -> int:
    if not iterations or math.isnan(iterations):
        return DEFAULT_ITERATIONS
    if math.isinf(iterations):
        return MAX_ITERATIONS if iterations > 0 else MIN_ITERATIONS
    return max(MIN_ITERATIONS, min(MAX_ITERATIONS, math.floor(iterations)))


def round2(value: float) -> float:
    """Round to 2 decimals, ties away from zero on the exact binary value."""
    return float(Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP))


def perturb(rng: Rng, base: float, spread: float) -> float:
    """Scale ``base`` by a uniform factor in [1 - spread, 1 + spread], floored at 0."""
    factor = 1 + (rng.random() * 2 - 1) * spread
    return max(0.0, base * factor)


def _round_count(value: float) -> int:
    # Half-up, so 2.5 connections become 3 rather than 2
    return int(math.floor(value + 0.5))


def perturb_loads(rng: Rng, loads: LoadData) -> LoadData:
    """
    Draw one perturbed load set. Draw order is fixed so seeded runs replay exactly.
    """
    mono = _round_count(perturb(rng, loads.mono, RESIDENTIAL_SPREAD))
    bi = _round_count(perturb(rng, loads.bi, RESIDENTIAL_SPREAD))
    tri = _round_count(perturb(rng, loads.tri, RESIDENTIAL_SPREAD))
    ip_qty = _round_count(perturb(rng, loads.ip_qty, COUNT_SPREAD))
    point_qty = _round_count(perturb(rng, loads.point_qty, COUNT_SPREAD))
    point_kva = perturb(rng, loads.point_kva, POINT_KVA_SPREAD)
    solar_qty = _round_count(perturb(rng, loads.solar_qty, SOLAR_SPREAD))
    solar_kva = perturb(rng, loads.solar_kva, SOLAR_SPREAD)
    return loads.model_copy(
        update={
            "mono": mono,
            "bi": bi,
            "tri": tri,
            "ip_qty": ip_qty,
            "point_qty": point_qty,
            "point_kva": point_kva,
            "solar_qty": solar_qty,
            "solar_kva": solar_kva,
        }
    )


@dataclass
class DrawOutcome:
    """
    Figures of one perturbed network that decide pass or fail.

    Attributes:
        peak_drop: Largest accumulated voltage drop (%)
        overload: Some connected segment exceeds its cable ampacity
        max_rise: Largest accumulated solar voltage rise (%)
    """
    peak_drop: float
    overload: bool
    max_rise: float


def has_overload(tree: NetworkTree, phys: SegmentPhysics, cables: Mapping[str, CableSpec]) -> bool:
    for i in tree.order:
        if i == tree.root:
            continue
        cable = cables.get(tree.nodes[i].cable_id)
        if cable is None or cable.ampacity <= 0:
            continue
        if phys.load_amps[i] > cable.ampacity:
            return True
    return False


def evaluate_draw(
    tree: NetworkTree,
    nodes: Sequence[NetworkNode],
    params: ProjectParams,
    cables: Mapping[str, CableSpec],
    illumination: Mapping[str, float],
) -> DrawOutcome:
    """
    Run the load and physics passes for one set of perturbed nodes.

    Args:
        tree: Tree built from the unperturbed nodes
        nodes: Perturbed nodes, same ids and order as ``tree.nodes``
        params: Project parameters
        cables: Cable catalog by id
        illumination: Public-lighting unit kVA by fixture type

    Returns:
        DrawOutcome with the same figures a full calculate pass reports
    """
    draw_tree = replace(tree, nodes=list(nodes))
    factor = resolve_diversity_factor(
        count_residential(nodes), params.normative_table, params.manual_class
    )
    flow = accumulate_loads(draw_tree, factor, illumination)
    phys = compute_physics(draw_tree, flow, cables, include_gd_in_qt=params.include_gd_in_qt)
    return DrawOutcome(
        peak_drop=max(phys.drop_pct + [0.0]),
        overload=has_overload(draw_tree, phys, cables),
        max_rise=phys.max_rise_pct,
    )


def histogram(values: np.ndarray, bins: int = HISTOGRAM_BINS) -> List[HistogramBin]:
    """
    Equal-width histogram spanning the observed min to max.

    Each bin is labelled by its upper edge; the maximum lands in the last bin.
    """
    if values.size == 0:
        return [HistogramBin(x=0.0, y=0) for _ in range(bins)]
    lo = float(values.min())
    span = max(1e-6, float(values.max()) - lo)
    idx = np.minimum(bins - 1, np.floor((values - lo) / span * bins).astype(int))
    counts = np.bincount(idx, minlength=bins)
    return [
        HistogramBin(x=round2(lo + ((i + 1) / bins) * span), y=int(counts[i]))
        for i in range(bins)
    ]


def run_monte_carlo(
    nodes: Sequence[Any],
    params: Any,
    cable_catalog: Mapping[str, Any],
    illumination_catalog: Mapping[str, float],
    iterations: Optional[int] = DEFAULT_ITERATIONS,
    seed: Any = None,
    *,
    rng: Optional[Rng] = None,
) -> MonteCarloResult:
    """
    Estimate voltage and loading risk under load uncertainty.

    Args:
        nodes: Base network nodes (or JSON-shaped dicts)
        params: ProjectParams (or dict)
        cable_catalog: Cable specs by id
        illumination_catalog: Public-lighting unit kVA by fixture type
        iterations: Number of draws, clamped to [10, 20000]
        seed: int, str or None (time-derived, not reproducible)
        rng: Explicit random stream; overrides ``seed`` when given

    Returns:
        MonteCarloResult with risk statistics and the peak-drop histogram

    Raises:
        TopologyError: Missing root, duplicate ids or a parent cycle
    """
    base_nodes: List[NetworkNode] = coerce_nodes(nodes)
    project = coerce_params(params)
    cables = coerce_cables(cable_catalog)
    n_iter = clamp_iterations(iterations)
    resolved_seed = seed_from_any(seed)
    stream: Rng = rng if rng is not None else Mulberry32(resolved_seed)
    cqt_limit = get_load_profile(project.profile).cqt_max
    tree = build_tree(base_nodes)

    logger.debug("Monte Carlo: %d iterations, seed %d, %d nodes", n_iter, resolved_seed, len(base_nodes))

    peaks = np.empty(n_iter, dtype=float)
    failures = 0
    for k in range(n_iter):
        perturbed = [n.model_copy(update={"loads": perturb_loads(stream, n.loads)}) for n in base_nodes]
        outcome = evaluate_draw(tree, perturbed, project, cables, illumination_catalog)

        peaks[k] = outcome.peak_drop
        if outcome.peak_drop > cqt_limit or outcome.overload or outcome.max_rise > MAX_SOLAR_RISE_PCT:
            failures += 1

    failure_risk = failures / n_iter
    p95 = float(np.quantile(peaks, 0.95))
    p95_penalty = max(0.0, (p95 - cqt_limit) / max(1e-6, cqt_limit))
    stability = min(1.0, max(0.0, 1 - failure_risk - p95_penalty * 0.5))

    return MonteCarloResult(
        stability_index=stability,
        failure_risk=failure_risk,
        avg_peak_drop=round2(float(np.mean(peaks))),
        p95_peak_drop=round2(p95),
        distribution=tuple(histogram(np.sort(peaks))),
        iterations=n_iter,
        seed=resolved_seed,
    )
