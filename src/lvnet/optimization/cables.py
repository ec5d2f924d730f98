"""
Cable Optimizer
===============

Local search over cable gauges: recalculate the network, upgrade every
segment that violates ampacity, voltage drop or solar rise limits to the
next cable by ampacity, and repeat until clean or out of iterations.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

from ..catalogs import MAX_SOLAR_RISE_PCT, ROOT_ID, get_load_profile
from ..engine.calculate import calculate
from ..models import CableSpec, ComputedNode, NetworkNode, coerce_cables, coerce_nodes, coerce_params

logger = logging.getLogger(__name__)

MAX_OPTIMIZER_ITERATIONS = 15


def cables_by_ampacity(catalog: Mapping[str, CableSpec]) -> List[str]:
    """Cable ids sorted by ampacity, smallest first (ties keep catalog order)."""
    return sorted(catalog, key=lambda cable_id: catalog[cable_id].ampacity)


def segment_violations(
    computed: ComputedNode,
    cable: CableSpec | None,
    cqt_max: float,
) -> List[str]:
    """
    List the limits a computed segment breaks.

    Args:
        computed: Node from a calculate pass
        cable: Assigned cable spec (None when the id is unknown)
        cqt_max: Voltage drop ceiling of the active profile (%)

    Returns:
        Names of the violated constraints ('ampacity', 'voltage_drop', 'solar_rise')
    """
    violations = []
    ampacity = cable.ampacity if cable is not None else 0.0
    if computed.calculated_load_amps > ampacity:
        violations.append("ampacity")
    if computed.accumulated_voltage_drop_pct > cqt_max:
        violations.append("voltage_drop")
    if computed.solar_voltage_rise_pct > MAX_SOLAR_RISE_PCT:
        violations.append("solar_rise")
    return violations


def optimize(
    scenario_id: str,
    nodes: Sequence[Any],
    params: Any,
    cable_catalog: Mapping[str, Any],
    illumination_catalog: Mapping[str, float],
) -> List[NetworkNode]:
    """
    Upgrade undersized cables until no violation remains.

    Stops after MAX_OPTIMIZER_ITERATIONS passes even if violations remain;
    callers needing a guarantee should recalculate the returned network.

    Args:
        scenario_id: Scenario identifier
        nodes: Network nodes (or JSON-shaped dicts)
        params: ProjectParams (or dict)
        cable_catalog: Cable specs by id
        illumination_catalog: Public-lighting unit kVA by fixture type

    Returns:
        New node list with possibly upgraded cable assignments
    """
    current = coerce_nodes(nodes)
    params = coerce_params(params)
    cables = coerce_cables(cable_catalog)
    ranked = cables_by_ampacity(cables)
    cqt_max = get_load_profile(params.profile).cqt_max

    for iteration in range(MAX_OPTIMIZER_ITERATIONS):
        result = calculate(scenario_id, current, params, cables, illumination_catalog)
        computed: Dict[str, ComputedNode] = {n.id: n for n in result.nodes}

        upgraded = []
        for idx, node in enumerate(current):
            if node.id == ROOT_ID:
                continue
            violations = segment_violations(computed[node.id], cables.get(node.cable_id), cqt_max)
            if not violations:
                continue
            # Unknown ids rank below the smallest cable
            position = ranked.index(node.cable_id) if node.cable_id in ranked else -1
            if position < len(ranked) - 1:
                next_cable = ranked[position + 1]
                current[idx] = node.model_copy(update={"cable_id": next_cable})
                upgraded.append(f"{node.id}: {node.cable_id or '-'} -> {next_cable} ({', '.join(violations)})")

        if not upgraded:
            logger.debug("Cable optimization settled after %d iteration(s)", iteration + 1)
            break
        logger.info("Iteration %d: upgraded %d segment(s): %s", iteration + 1, len(upgraded), "; ".join(upgraded))
    else:
        logger.info("Cable optimization stopped at the %d-iteration cap", MAX_OPTIMIZER_ITERATIONS)

    return current
