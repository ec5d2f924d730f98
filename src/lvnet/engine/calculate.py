"""
Calculate Pass
==============

One deterministic load-flow pass over a radial LV network:

    tree -> diversity factor -> loads (bottom-up) -> physics (top-down) -> KPIs

Inputs are never mutated; every call builds a fresh EngineResult.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..catalogs import DiversityRow, get_load_profile
from ..models import (
    ComputedNode,
    EngineResult,
    coerce_cables,
    coerce_nodes,
    coerce_params,
)
from ..topology.diversity import count_residential, resolve_diversity_factor
from ..topology.tree import NetworkTree, build_tree
from .kpis import gd_impact, limit_warnings, network_kpis, sustainability_metrics
from .loads import LoadFlow, accumulate_loads
from .physics import SegmentPhysics, compute_physics

logger = logging.getLogger(__name__)


def _computed_nodes(tree: NetworkTree, flow: LoadFlow, phys: SegmentPhysics) -> List[ComputedNode]:
    computed = []
    for i, node in enumerate(tree.nodes):
        computed.append(
            ComputedNode(
                id=node.id,
                parent_id=node.parent_id,
                length_meters=node.length_meters,
                cable_id=node.cable_id,
                loads=node.loads,
                connected=tree.connected[i],
                node_distributed_kva=flow.distributed_kva[i],
                node_concentrated_kva=flow.concentrated_kva[i],
                node_solar_kva=flow.solar_kva[i],
                subtree_total_kva=flow.subtree_total_kva[i],
                subtree_total_solar_kva=flow.subtree_solar_kva[i],
                calculated_load_amps=phys.load_amps[i],
                accumulated_voltage_drop_pct=phys.drop_pct[i],
                joule_loss_watts=phys.loss_watts[i],
                solar_voltage_rise_pct=phys.rise_pct[i],
                net_daytime_current_amps=phys.net_day_amps[i],
            )
        )
    return computed


def calculate(
    scenario_id: str,
    nodes: Sequence[Any],
    params: Any,
    cable_catalog: Mapping[str, Any],
    illumination_catalog: Mapping[str, float],
    *,
    diversity_tables: Optional[Dict[str, List[DiversityRow]]] = None,
) -> EngineResult:
    """
    Run load flow, voltage drop and loss calculation for one scenario.

    Args:
        scenario_id: Scenario identifier echoed in the result
        nodes: NetworkNode list (or JSON-shaped dicts), root included
        params: ProjectParams (or dict)
        cable_catalog: Cable specs by id
        illumination_catalog: Public-lighting unit kVA by fixture type
        diversity_tables: Alternative DMDI tables (defaults to the built-in set)

    Returns:
        EngineResult with per-node figures, KPIs and warnings

    Raises:
        TopologyError: Missing root, duplicate ids or a parent cycle
    """
    node_list = coerce_nodes(nodes)
    params = coerce_params(params)
    cables = coerce_cables(cable_catalog)

    tree = build_tree(node_list)
    warnings = tree.orphan_warnings()

    customers = count_residential(node_list)
    factor = resolve_diversity_factor(
        customers, params.normative_table, params.manual_class, diversity_tables
    )

    flow = accumulate_loads(tree, factor, illumination_catalog)
    phys = compute_physics(tree, flow, cables, include_gd_in_qt=params.include_gd_in_qt)
    warnings.extend(phys.warnings)

    kpis = network_kpis(tree, flow, phys, params, factor, illumination_catalog)
    warnings.extend(limit_warnings(tree, phys, kpis, get_load_profile(params.profile)))

    logger.debug(
        "Scenario %s: %d nodes (%d connected), %d customers, DMDI %.3f, peak drop %.3f%%",
        scenario_id,
        len(node_list),
        len(tree.order),
        customers,
        factor,
        kpis.max_cqt,
    )

    return EngineResult(
        scenario_id=scenario_id,
        nodes=tuple(_computed_nodes(tree, flow, phys)),
        kpis=kpis,
        sustainability=sustainability_metrics(phys.total_loss_watts, params),
        gd_impact=gd_impact(tree, flow, phys),
        warnings=tuple(warnings),
    )
