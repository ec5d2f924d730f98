from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .catalogs import DEFAULT_CABLES, IP_TYPES
from .engine.calculate import calculate
from .models import CableSpec, ComputedNode, EngineResult, NetworkNode, ProjectParams
from .optimization.cables import optimize
from .simulation.monte_carlo import DEFAULT_ITERATIONS, run_monte_carlo


class CaseInput(BaseModel):
    """A scenario as exchanged with the persistence layer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    scenario_id: str = Field("CLI", description="Scenario identifier.")
    nodes: List[NetworkNode]
    params: ProjectParams
    cables: Dict[str, CableSpec] = Field(default_factory=lambda: dict(DEFAULT_CABLES))
    ips: Dict[str, float] = Field(default_factory=lambda: dict(IP_TYPES))


def load_case(path: str) -> CaseInput:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Case file not found: {path}")
    return CaseInput.model_validate(json.loads(p.read_text(encoding="utf-8")))


def nodes_frame(nodes: Sequence[ComputedNode]) -> pd.DataFrame:
    """Flatten computed nodes (loads included) into one row per node."""
    return pd.json_normalize([n.model_dump(by_alias=True) for n in nodes])


def _print_result(result: EngineResult) -> None:
    k = result.kpis
    print(f"Scenario: {result.scenario_id}")
    print(f"Total load: {k.total_load:.2f} kVA (transformer occupancy {k.trafo_occupation:.1f}%)")
    print(f"Customers: {k.total_customers}, DMDI factor: {k.global_dmdi_factor:.2f}")
    print(f"Peak voltage drop: {k.max_cqt:.2f}%")
    print(f"Annual losses: {result.sustainability.annual_energy_loss_kwh:.1f} kWh "
          f"(R$ {result.sustainability.annual_financial_loss_brl:.2f})")
    if result.gd_impact.total_installed_kva > 0:
        print(f"Solar: {result.gd_impact.total_installed_kva:.1f} kVA, "
              f"max rise {result.gd_impact.max_voltage_rise:.2f}%")
    if result.warnings:
        print("\nWarnings:", file=sys.stderr)
        for w in result.warnings:
            print(f"- {w}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Load flow, voltage drop and loss calculation for radial LV networks."
    )
    parser.add_argument(
        "command",
        choices=["calculate", "optimize", "montecarlo"],
        help="Operation to run on the case.",
    )
    parser.add_argument("case", help="Path to the case JSON (scenarioId, nodes, params, cables, ips).")
    parser.add_argument("--output", "-o", help="Path to write the JSON output.")
    parser.add_argument("--nodes-csv", help="Path to write the per-node results table (calculate/optimize).")
    parser.add_argument("--iterations", type=int, default=DEFAULT_ITERATIONS, help="Monte Carlo iterations.")
    parser.add_argument("--seed", help="Monte Carlo seed (integer or text).")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        case = load_case(args.case)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        print(f"Input error: {e}", file=sys.stderr)
        return 2
    except ValidationError as e:
        print("Input validation error:", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    try:
        if args.command == "montecarlo":
            seed: Any = args.seed
            if seed is not None and seed.lstrip("-").isdigit():
                seed = int(seed)
            mc = run_monte_carlo(case.nodes, case.params, case.cables, case.ips, args.iterations, seed)
            payload = mc.model_dump_json(by_alias=True, indent=2)
            print(f"Iterations: {mc.iterations} (seed {mc.seed})")
            print(f"Stability index: {mc.stability_index:.3f}, failure risk: {mc.failure_risk*100:.1f}%")
            print(f"Peak drop: mean {mc.avg_peak_drop:.2f}%, p95 {mc.p95_peak_drop:.2f}%")
            status = 0 if mc.failure_risk == 0 else 1
        else:
            nodes = case.nodes
            if args.command == "optimize":
                nodes = optimize(case.scenario_id, nodes, case.params, case.cables, case.ips)
            result = calculate(case.scenario_id, nodes, case.params, case.cables, case.ips)
            if args.command == "optimize":
                payload = json.dumps(
                    {
                        "scenarioId": case.scenario_id,
                        "nodes": [n.model_dump(by_alias=True) for n in nodes],
                    },
                    indent=2,
                    ensure_ascii=False,
                )
            else:
                payload = result.model_dump_json(by_alias=True, indent=2)
            _print_result(result)
            if args.nodes_csv:
                nodes_frame(result.nodes).to_csv(args.nodes_csv, index=False)
            status = 0 if not result.warnings else 1
    except ValueError as e:
        # TopologyError and empty catalogs
        print(f"Calculation failed: {e}", file=sys.stderr)
        return 2

    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
    return status


if __name__ == "__main__":
    raise SystemExit(main())
