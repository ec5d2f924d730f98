"""
Load Accumulation
=================

Bottom-up pass: local demand components of every node and the
subtree totals flowing through each segment.

Local components:
- Distributed: residential connections x diversity factor
- Concentrated: point loads + public lighting
- Solar: installed generation
"""

from dataclasses import dataclass
from typing import List, Mapping

from ..models import NetworkNode
from ..topology.tree import NetworkTree


@dataclass
class LoadFlow:
    """
    Per-node kVA figures, indexed like the tree arena.

    Disconnected nodes keep zeros everywhere.
    """
    distributed_kva: List[float]
    concentrated_kva: List[float]
    solar_kva: List[float]
    subtree_total_kva: List[float]
    subtree_solar_kva: List[float]

    def local_kva(self, i: int) -> float:
        return self.distributed_kva[i] + self.concentrated_kva[i]


def concentrated_kva(node: NetworkNode, illumination: Mapping[str, float]) -> float:
    loads = node.loads
    return loads.point_kva + loads.ip_qty * illumination.get(loads.ip_type, 0.0)


def accumulate_loads(
    tree: NetworkTree,
    diversity_factor: float,
    illumination: Mapping[str, float],
) -> LoadFlow:
    """
    Accumulate demand from the leaves up to the root.

    Args:
        tree: Validated network tree
        diversity_factor: kVA per residential connection
        illumination: Public-lighting unit kVA by fixture type

    Returns:
        LoadFlow with local and subtree totals
    """
    n = len(tree)
    flow = LoadFlow(
        distributed_kva=[0.0] * n,
        concentrated_kva=[0.0] * n,
        solar_kva=[0.0] * n,
        subtree_total_kva=[0.0] * n,
        subtree_solar_kva=[0.0] * n,
    )

    for i in tree.post_order:
        node = tree.nodes[i]
        flow.distributed_kva[i] = node.loads.residential_count * diversity_factor
        flow.concentrated_kva[i] = concentrated_kva(node, illumination)
        flow.solar_kva[i] = node.loads.solar_kva

        children_total = 0.0
        children_solar = 0.0
        for c in tree.children[i]:
            children_total += flow.subtree_total_kva[c]
            children_solar += flow.subtree_solar_kva[c]

        flow.subtree_total_kva[i] = flow.distributed_kva[i] + flow.concentrated_kva[i] + children_total
        flow.subtree_solar_kva[i] = flow.solar_kva[i] + children_solar

    return flow
