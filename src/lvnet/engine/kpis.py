"""
Network KPIs & Sustainability
=============================

Post-processing over the load and physics passes:
- Load totals and transformer occupancy
- Peak accumulated voltage drop
- Annual Joule-loss energy, its cost, CO2 and tree equivalent
- Distributed generation (solar) impact
"""

import math
from typing import List, Mapping, Optional

from ..catalogs import MAX_SOLAR_RISE_PCT, LoadProfile
from ..models import GdImpactMetrics, NetworkKpis, ProjectParams, SustainabilityMetrics
from ..topology.tree import NetworkTree
from .loads import LoadFlow
from .physics import SegmentPhysics

HOURS_PER_YEAR = 8760
LOAD_LOSS_FACTOR = 0.25
DEFAULT_ENERGY_PRICE_BRL_KWH = 0.85
CO2_FACTOR_KG_KWH = 0.126
CO2_PER_TREE_KG_YEAR = 20.0

# Share of the losses assumed recoverable through network upgrades
MITIGATION_FRACTION = 0.40
PROJECTION_YEARS = 10

REVERSE_FLOW_THRESHOLD_A = 0.5
SELF_CONSUMPTION_PCT = 30.0


def energy_price(params: ProjectParams) -> float:
    price = params.energy_price_brl_kwh
    if price is not None and math.isfinite(price) and price > 0:
        return float(price)
    return DEFAULT_ENERGY_PRICE_BRL_KWH


def network_kpis(
    tree: NetworkTree,
    flow: LoadFlow,
    phys: SegmentPhysics,
    params: ProjectParams,
    diversity_factor: float,
    illumination: Mapping[str, float],
) -> NetworkKpis:
    """Aggregate load KPIs. Declared loads are summed over every input node."""
    nodes = tree.nodes
    total_load = flow.subtree_total_kva[tree.root]
    return NetworkKpis(
        total_load=total_load,
        diversified_load=sum(n.loads.residential_count * diversity_factor for n in nodes),
        point_load=sum(n.loads.point_kva for n in nodes),
        ip_load=sum(n.loads.ip_qty * illumination.get(n.loads.ip_type, 0.0) for n in nodes),
        trafo_occupation=(total_load / params.trafo_kva) * 100 if params.trafo_kva > 0 else 0.0,
        max_cqt=max(phys.drop_pct + [0.0]),
        total_customers=sum(n.loads.residential_count + n.loads.point_qty for n in nodes),
        global_dmdi_factor=diversity_factor,
    )


def sustainability_metrics(total_loss_watts: float, params: ProjectParams) -> SustainabilityMetrics:
    """
    Convert the network Joule loss into yearly energy, money and CO2.

    Args:
        total_loss_watts: Sum of segment losses at peak (W)
        params: Project parameters (energy price override)

    Returns:
        SustainabilityMetrics including the 10-year mitigation projection
    """
    annual_kwh = (total_loss_watts / 1000) * HOURS_PER_YEAR * LOAD_LOSS_FACTOR
    annual_brl = annual_kwh * energy_price(params)
    annual_co2 = annual_kwh * CO2_FACTOR_KG_KWH
    return SustainabilityMetrics(
        annual_energy_loss_kwh=annual_kwh,
        annual_financial_loss_brl=annual_brl,
        annual_co2_kg=annual_co2,
        potential_savings_brl_10y=annual_brl * PROJECTION_YEARS * MITIGATION_FRACTION,
        potential_co2_prevented_10y=annual_co2 * PROJECTION_YEARS * MITIGATION_FRACTION,
        trees_equivalent=annual_co2 / CO2_PER_TREE_KG_YEAR,
    )


def gd_impact(tree: NetworkTree, flow: LoadFlow, phys: SegmentPhysics) -> GdImpactMetrics:
    installed = flow.subtree_solar_kva[tree.root]
    return GdImpactMetrics(
        total_installed_kva=installed,
        max_voltage_rise=phys.max_rise_pct,
        has_reverse_flow=phys.max_reverse_amps > REVERSE_FLOW_THRESHOLD_A,
        reverse_flow_amps=phys.max_reverse_amps,
        self_consumption_rate=SELF_CONSUMPTION_PCT if installed > 0 else 0.0,
    )


def limit_warnings(
    tree: NetworkTree,
    phys: SegmentPhysics,
    kpis: NetworkKpis,
    profile: LoadProfile,
) -> List[str]:
    """Warnings for figures beyond the load profile limits."""
    warnings: List[str] = []

    worst: Optional[int] = None
    for i in tree.order:
        if worst is None or phys.drop_pct[i] > phys.drop_pct[worst]:
            worst = i
    if worst is not None and phys.drop_pct[worst] > profile.cqt_max:
        warnings.append(
            f"Voltage drop at {tree.nodes[worst].id} is {phys.drop_pct[worst]:.2f}%, "
            f"above the {profile.cqt_max:g}% limit of profile '{profile.name}'."
        )

    if kpis.trafo_occupation > profile.load_max:
        warnings.append(
            f"Transformer occupancy {kpis.trafo_occupation:.1f}% exceeds "
            f"{profile.load_max:g}% for profile '{profile.name}'."
        )

    if phys.max_rise_pct > MAX_SOLAR_RISE_PCT:
        warnings.append(
            f"Solar voltage rise reaches {phys.max_rise_pct:.2f}%, above the {MAX_SOLAR_RISE_PCT:g}% limit."
        )

    return warnings
