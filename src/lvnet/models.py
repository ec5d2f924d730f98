from __future__ import annotations

from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt
from pydantic.alias_generators import to_camel


class _Record(BaseModel):
    """Frozen record that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class LoadData(_Record):
    mono: NonNegativeInt = Field(0, description="Single-phase residential connections.")
    bi: NonNegativeInt = Field(0, description="Two-phase residential connections.")
    tri: NonNegativeInt = Field(0, description="Three-phase residential connections.")
    point_qty: NonNegativeInt = Field(0, description="Number of point (commercial) loads.")
    point_kva: NonNegativeFloat = Field(0.0, description="Aggregate kVA of the point loads.")
    ip_type: str = Field("Sem IP", description="Public-lighting fixture type (illumination catalog key).")
    ip_qty: NonNegativeInt = Field(0, description="Number of public-lighting fixtures.")
    solar_kva: NonNegativeFloat = Field(0.0, description="Installed solar generation (kVA).")
    solar_qty: NonNegativeInt = Field(0, description="Clients with solar generation at this point.")

    @property
    def residential_count(self) -> int:
        return self.mono + self.bi + self.tri


class NetworkNode(_Record):
    id: str = Field(..., min_length=1, description="Node identifier, unique within a calculation.")
    parent_id: str = Field("", description="Parent node id; empty only for the root.")
    length_meters: NonNegativeFloat = Field(
        0.0,
        validation_alias=AliasChoices("lengthMeters", "meters", "length_meters"),
        serialization_alias="lengthMeters",
        description="Span length to the parent (m).",
    )
    cable_id: str = Field(
        "",
        validation_alias=AliasChoices("cableId", "cable", "cable_id"),
        serialization_alias="cableId",
        description="Cable catalog key of the incoming segment.",
    )
    loads: LoadData = Field(default_factory=LoadData)


class CableSpec(_Record):
    r: NonNegativeFloat = Field(..., description="Resistance (ohm/km).")
    x: NonNegativeFloat = Field(0.0, description="Reactance (ohm/km). Informational.")
    coef: NonNegativeFloat = Field(..., description="Moment-method voltage drop coefficient.")
    ampacity: NonNegativeFloat = Field(..., description="Thermal current limit (A).")


class ProjectParams(_Record):
    trafo_kva: NonNegativeFloat = Field(..., description="Rated transformer power (kVA).")
    profile: str = Field("Massivos", description="Load profile name (sets the voltage drop ceiling).")
    class_type: Literal["Automatic", "Manual"] = Field(
        "Automatic", description="How the caller chose the class. Informational."
    )
    manual_class: Literal["A", "B", "C", "D"] = Field("A", description="Diversity class used for the lookup.")
    normative_table: str = Field("PRODIST", description="Diversity table name.")
    include_gd_in_qt: bool = Field(
        False, description="Offset solar against diversified demand in the voltage drop."
    )
    energy_price_brl_kwh: Optional[float] = Field(
        None, ge=0, le=50, description="Energy price override for monetized losses (BRL/kWh)."
    )


class ComputedNode(NetworkNode):
    """Input node plus every figure derived by one calculate pass."""

    connected: bool = Field(True, description="False for orphans and everything beneath them.")
    node_distributed_kva: float = 0.0
    node_concentrated_kva: float = 0.0
    node_solar_kva: float = 0.0
    subtree_total_kva: float = 0.0
    subtree_total_solar_kva: float = 0.0
    calculated_load_amps: float = 0.0
    accumulated_voltage_drop_pct: float = 0.0
    joule_loss_watts: float = 0.0
    solar_voltage_rise_pct: float = 0.0
    net_daytime_current_amps: float = 0.0


class NetworkKpis(_Record):
    total_load: float
    diversified_load: float
    point_load: float
    ip_load: float
    trafo_occupation: float
    max_cqt: float
    total_customers: int
    global_dmdi_factor: float


class SustainabilityMetrics(_Record):
    annual_energy_loss_kwh: float
    annual_financial_loss_brl: float
    annual_co2_kg: float
    potential_savings_brl_10y: float
    potential_co2_prevented_10y: float
    trees_equivalent: float


class GdImpactMetrics(_Record):
    total_installed_kva: float
    max_voltage_rise: float
    has_reverse_flow: bool
    reverse_flow_amps: float
    self_consumption_rate: float


class EngineResult(_Record):
    scenario_id: str
    nodes: Tuple[ComputedNode, ...]
    kpis: NetworkKpis
    sustainability: SustainabilityMetrics
    gd_impact: GdImpactMetrics
    warnings: Tuple[str, ...] = ()

    def node(self, node_id: str) -> Optional[ComputedNode]:
        """Get a computed node by id."""
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None


class HistogramBin(_Record):
    x: float = Field(..., description="Upper edge of the bin (peak drop %).")
    y: int = Field(..., description="Iterations falling in the bin.")


class MonteCarloResult(_Record):
    stability_index: float
    failure_risk: float
    avg_peak_drop: float
    p95_peak_drop: float
    distribution: Tuple[HistogramBin, ...]
    iterations: int
    seed: int


CableCatalog = Mapping[str, CableSpec]
IlluminationCatalog = Mapping[str, float]


def coerce_nodes(nodes: Iterable[Any]) -> List[NetworkNode]:
    """Accept NetworkNode instances or JSON-shaped dicts."""
    return [n if isinstance(n, NetworkNode) else NetworkNode.model_validate(n) for n in nodes]


def coerce_params(params: Any) -> ProjectParams:
    if isinstance(params, ProjectParams):
        return params
    return ProjectParams.model_validate(params)


def coerce_cables(catalog: Mapping[str, Any]) -> Dict[str, CableSpec]:
    return {
        key: spec if isinstance(spec, CableSpec) else CableSpec.model_validate(spec)
        for key, spec in catalog.items()
    }
