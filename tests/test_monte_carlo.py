"""Monte Carlo risk simulation."""

import numpy as np
import pytest

from lvnet import calculate, run_monte_carlo
from lvnet.catalogs import get_load_profile
from lvnet.models import LoadData
from lvnet.simulation import Mulberry32, clamp_iterations, evaluate_draw, perturb_loads, seed_from_any
from lvnet.simulation.monte_carlo import HISTOGRAM_BINS, histogram, round2
from lvnet.topology import build_tree

from conftest import CABLE_16, CABLE_35, node


class ScriptedRng:
    def __init__(self, values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


class ConstantRng:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class TestPerturbation:
    def test_draw_order_and_rounding(self):
        loads = LoadData(mono=10, bi=4, tri=2, ip_qty=5, point_qty=3, point_kva=8.0, solar_qty=2, solar_kva=4.0)
        rng = ScriptedRng([0.0, 0.5, 0.75, 0.0, 1.0, 0.5, 0.25, 1.0])

        out = perturb_loads(rng, loads)

        assert out.mono == 9  # 8.5 rounds up
        assert out.bi == 4
        assert out.tri == 2
        assert out.ip_qty == 4
        assert out.point_qty == 4
        assert out.point_kva == pytest.approx(8.0)
        assert out.solar_qty == 2
        assert out.solar_kva == pytest.approx(5.2)
        assert rng.values == []

    def test_midpoint_draw_leaves_loads_unchanged(self):
        loads = LoadData(mono=3, point_kva=12.5, solar_kva=2.0, ip_type="IP 70W", ip_qty=4)
        assert perturb_loads(ConstantRng(0.5), loads) == loads

    def test_zero_loads_stay_zero(self):
        assert perturb_loads(ConstantRng(0.99), LoadData()) == LoadData()

    @pytest.mark.parametrize(
        "given,expected",
        [
            (None, 1000),
            (0, 1000),
            (float("nan"), 1000),
            (5, 10),
            (250, 250),
            (250.9, 250),
            (50000, 20000),
            (float("inf"), 20000),
        ],
    )
    def test_clamp_iterations(self, given, expected):
        assert clamp_iterations(given) == expected


class TestHistogram:
    def test_bins_cover_min_to_max(self):
        bins = histogram(np.linspace(1.0, 3.0, 41))
        assert len(bins) == HISTOGRAM_BINS
        assert sum(b.y for b in bins) == 41
        assert bins[-1].x == 3.0
        assert bins[0].x == 1.1

    def test_constant_values_fall_in_first_bin(self):
        bins = histogram(np.full(12, 2.5))
        assert bins[0].y == 12
        assert all(b.y == 0 for b in bins[1:])

    @pytest.mark.parametrize(
        "value,expected",
        [(0.125, 0.13), (2.675, 2.67), (1.005, 1.0), (4.16499, 4.16), (0.0, 0.0)],
    )
    def test_round2_half_up_on_binary_value(self, value, expected):
        assert round2(value) == expected


class TestRunMonteCarlo:
    def test_reference_run(self, risk_network, risk_params, cables, ips):
        mc = run_monte_carlo(risk_network, risk_params, cables, ips, iterations=200, seed="abc")

        assert mc.iterations == 200
        assert mc.seed == 440920331
        assert mc.failure_risk == 0.525
        assert mc.stability_index == pytest.approx(0.38915825365753914)
        assert mc.avg_peak_drop == pytest.approx(5.05, abs=0.01)
        assert mc.p95_peak_drop == pytest.approx(5.86, abs=0.01)
        assert [b.y for b in mc.distribution] == [
            2, 6, 7, 14, 9, 10, 17, 15, 10, 12, 16, 11, 9, 4, 13, 6, 11, 15, 5, 8,
        ]
        assert mc.distribution[0].x == 4.16
        assert mc.distribution[-1].x == 6.02

    def test_numeric_seed_reference(self, risk_network, risk_params, cables, ips):
        mc = run_monte_carlo(risk_network, risk_params, cables, ips, iterations=200, seed=42)
        assert mc.failure_risk == 0.55
        assert mc.stability_index == pytest.approx(0.35712000744608396)
        assert mc.avg_peak_drop == pytest.approx(5.08, abs=0.01)
        assert mc.p95_peak_drop == pytest.approx(5.93, abs=0.01)

    def test_same_seed_same_result(self, risk_network, risk_params, cables, ips):
        a = run_monte_carlo(risk_network, risk_params, cables, ips, iterations=50, seed=7)
        b = run_monte_carlo(risk_network, risk_params, cables, ips, iterations=50, seed=7)
        assert a == b
        assert a.failure_risk == 0.56

    def test_different_seed_different_draws(self, risk_network, risk_params, cables, ips):
        a = run_monte_carlo(risk_network, risk_params, cables, ips, iterations=200, seed="abc")
        b = run_monte_carlo(risk_network, risk_params, cables, ips, iterations=200, seed=42)
        assert [x.y for x in a.distribution] != [x.y for x in b.distribution]

    def test_iterations_clamped(self, two_node_network, two_node_params, cables, ips):
        mc = run_monte_carlo(two_node_network, two_node_params, cables, ips, iterations=3, seed=1)
        assert mc.iterations == 10
        assert sum(b.y for b in mc.distribution) == 10

    def test_unperturbed_stream(self, feeder_network, params, cables, ips):
        mc = run_monte_carlo(feeder_network, params, cables, ips, iterations=20, rng=ConstantRng(0.5))
        assert mc.failure_risk == 0.0
        assert mc.stability_index == 1.0
        assert mc.avg_peak_drop == pytest.approx(1.22)
        assert mc.distribution[0].y == 20

    def test_bounds(self, risk_network, risk_params, cables, ips):
        mc = run_monte_carlo(risk_network, risk_params, cables, ips, iterations=30, seed="bounds")
        assert 0.0 <= mc.failure_risk <= 1.0
        assert 0.0 <= mc.stability_index <= 1.0
        assert len(mc.distribution) == HISTOGRAM_BINS

    def test_inputs_not_mutated(self, risk_network, risk_params, cables, ips):
        before = [n.model_dump() for n in risk_network]
        run_monte_carlo(risk_network, risk_params, cables, ips, iterations=10, seed=3)
        assert [n.model_dump() for n in risk_network] == before


def draws(nodes, seed, count):
    stream = Mulberry32(seed_from_any(seed))
    for _ in range(count):
        yield [n.model_copy(update={"loads": perturb_loads(stream, n.loads)}) for n in nodes]


class TestDrawEvaluation:
    @pytest.fixture
    def mixed_network(self):
        """Overload-prone span, a solar branch and a disconnected pair."""
        return [
            node("TRAFO", parent_id="", cable=""),
            node("P1", meters=10, cable=CABLE_16, point_kva=45, mono=2),
            node("P2", parent_id="P1", meters=60, cable=CABLE_35, mono=6, solar_kva=12, solar_qty=3),
            node("O1", parent_id="GHOST", meters=20, cable=CABLE_16, point_kva=200),
            node("O2", parent_id="O1", meters=20, cable="unlisted", tri=5),
        ]

    @pytest.mark.parametrize("include_gd", [False, True])
    def test_matches_full_calculation(self, mixed_network, params, cables, ips, include_gd):
        project = params.model_copy(update={"include_gd_in_qt": include_gd})
        tree = build_tree(mixed_network)

        outcomes = []
        for perturbed in draws(mixed_network, "draws", 40):
            outcome = evaluate_draw(tree, perturbed, project, cables, ips)
            result = calculate("MC", perturbed, project, cables, ips)

            assert outcome.peak_drop == max(n.accumulated_voltage_drop_pct for n in result.nodes)
            assert outcome.max_rise == result.gd_impact.max_voltage_rise
            assert outcome.overload == any("Overload" in w for w in result.warnings)
            outcomes.append(outcome)

        assert {o.overload for o in outcomes} == {True, False}

    def test_run_matches_calculate_loop(self, risk_network, risk_params, cables, ips):
        limit = get_load_profile(risk_params.profile).cqt_max
        peaks, failures = [], 0
        for perturbed in draws(risk_network, 99, 60):
            result = calculate("MC", perturbed, risk_params, cables, ips)
            peak = max(n.accumulated_voltage_drop_pct for n in result.nodes)
            peaks.append(peak)
            overload = any("Overload" in w for w in result.warnings)
            if peak > limit or overload or result.gd_impact.max_voltage_rise > 5.0:
                failures += 1

        mc = run_monte_carlo(risk_network, risk_params, cables, ips, iterations=60, seed=99)

        assert mc.failure_risk == failures / 60
        assert mc.avg_peak_drop == round2(float(np.mean(peaks)))
        assert mc.p95_peak_drop == round2(float(np.quantile(peaks, 0.95)))

    def test_topology_errors_raised_before_drawing(self, params, cables, ips):
        nodes = [node("P1", parent_id="P0", mono=1)]
        rng = ScriptedRng([])
        with pytest.raises(ValueError, match="TRAFO"):
            run_monte_carlo(nodes, params, cables, ips, iterations=10, rng=rng)
