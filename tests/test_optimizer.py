"""Cable upgrade search."""

import logging

import pytest

from lvnet import calculate, optimize
from lvnet.models import ComputedNode, ProjectParams
from lvnet.optimization import MAX_OPTIMIZER_ITERATIONS, cables_by_ampacity, segment_violations

from conftest import CABLE_16, CABLE_35, CABLE_70, CABLE_150, node


@pytest.fixture
def urban_params():
    return ProjectParams(trafo_kva=75, profile="Urbano Padrão", manual_class="A")


def long_span(meters, cable=CABLE_16):
    return [node("TRAFO", parent_id="", cable=""), node("P1", meters=meters, cable=cable, point_kva=30)]


class TestRanking:
    def test_sorted_by_ampacity(self, cables):
        ranked = cables_by_ampacity(cables)
        assert ranked[0] == CABLE_16
        assert ranked[-1] == CABLE_150
        amps = [cables[c].ampacity for c in ranked]
        assert amps == sorted(amps)

    def test_segment_violations(self, cables):
        hot = ComputedNode(
            id="P1",
            parent_id="TRAFO",
            cable_id=CABLE_35,
            calculated_load_amps=200.0,
            accumulated_voltage_drop_pct=7.0,
            solar_voltage_rise_pct=6.0,
        )
        assert segment_violations(hot, cables[CABLE_35], 5.0) == ["ampacity", "voltage_drop", "solar_rise"]
        assert segment_violations(hot, cables[CABLE_150], 8.0) == ["solar_rise"]

    def test_unknown_cable_counts_as_zero_ampacity(self):
        computed = ComputedNode(id="P1", parent_id="TRAFO", calculated_load_amps=0.5)
        assert segment_violations(computed, None, 5.0) == ["ampacity"]


class TestOptimize:
    def test_clean_network_unchanged(self, two_node_network, two_node_params, cables, ips):
        result = optimize("s1", two_node_network, two_node_params, cables, ips)
        assert [n.cable_id for n in result] == [n.cable_id for n in two_node_network]

    def test_upgrades_until_drop_is_within_limit(self, urban_params, cables, ips):
        # 30 kVA at 200 m only fits the drop ceiling on the largest gauge
        result = optimize("s1", long_span(200), urban_params, cables, ips)
        assert result[1].cable_id == CABLE_150

        check = calculate("s1", result, urban_params, cables, ips)
        assert check.kpis.max_cqt <= 5.0

    def test_never_downgrades(self, feeder_network, params, cables, ips):
        oversized = [n.model_copy(update={"cable_id": CABLE_150}) if n.id == "P2" else n for n in feeder_network]
        result = optimize("s1", oversized, params, cables, ips)
        ranked = cables_by_ampacity(cables)
        for before, after in zip(oversized, result):
            if before.id == "TRAFO":
                continue
            assert ranked.index(after.cable_id) >= ranked.index(before.cable_id)
        assert result[2].cable_id == CABLE_150

    def test_insufficient_catalog_stops_on_largest_cable(self, urban_params, cables, ips):
        result = optimize("s1", long_span(400), urban_params, cables, ips)
        assert result[1].cable_id == CABLE_150
        check = calculate("s1", result, urban_params, cables, ips)
        assert any("Voltage drop at P1" in w for w in check.warnings)

    def test_iteration_cap(self, urban_params, cables, ips, caplog):
        catalog = dict(cables)
        # One extra gauge per pass would need more passes than allowed
        for k in range(MAX_OPTIMIZER_ITERATIONS + 5):
            catalog[f"ladder-{k}"] = catalog[CABLE_16].model_copy(update={"ampacity": 86 + k})
        with caplog.at_level(logging.INFO, logger="lvnet.optimization.cables"):
            result = optimize("s1", long_span(200), urban_params, catalog, ips)
        assert result[1].cable_id == f"ladder-{MAX_OPTIMIZER_ITERATIONS - 1}"
        assert "cap" in caplog.text

    def test_unknown_cable_moves_to_smallest(self, two_node_params, cables, ips):
        nodes = [node("TRAFO", parent_id="", cable=""), node("P1", meters=10, cable="mystery", mono=1)]
        result = optimize("s1", nodes, two_node_params, cables, ips)
        assert result[1].cable_id == CABLE_16

    def test_inputs_not_mutated(self, urban_params, cables, ips):
        nodes = long_span(200, cable=CABLE_70)
        optimize("s1", nodes, urban_params, cables, ips)
        assert nodes[1].cable_id == CABLE_70

    def test_accepts_dicts(self, urban_params, cables, ips):
        nodes = [n.model_dump(by_alias=True) for n in long_span(200)]
        result = optimize("s1", nodes, urban_params.model_dump(), cables, ips)
        assert result[1].cable_id == CABLE_150
