"""
Feeder study (single snapshot plus risk screening).

Loads examples/case_feeder.json, runs the calculate pass and a seeded
Monte Carlo run, and prints the per-node table.
"""

from pathlib import Path

from lvnet import calculate, run_monte_carlo
from lvnet.cli import load_case, nodes_frame

CASE = Path(__file__).resolve().parent / "case_feeder.json"


def main() -> None:
    case = load_case(str(CASE))
    result = calculate(case.scenario_id, case.nodes, case.params, case.cables, case.ips)
    table = nodes_frame(result.nodes)

    print("=== Nodes ===")
    print(table[["id", "subtreeTotalKva", "calculatedLoadAmps", "accumulatedVoltageDropPct"]].to_string(index=False))
    print("\n=== KPIs ===")
    for key, value in result.kpis.model_dump(by_alias=True).items():
        print(f"{key}: {value}")

    mc = run_monte_carlo(case.nodes, case.params, case.cables, case.ips, iterations=500, seed=case.scenario_id)
    print("\n=== Monte Carlo (500 draws) ===")
    print(f"stability {mc.stability_index:.3f}, failure risk {mc.failure_risk:.1%}, p95 drop {mc.p95_peak_drop:.2f}%")


if __name__ == "__main__":
    main()
