"""
Network Tree
============

Turns the flat node list (parent-id back-references) into a rooted
radial tree stored as an arena of integer indices.

Validates:
- Unique node ids
- Presence of the root transformer node
- Acyclic parent chains (whole arena, reachable or not)

Nodes whose parent does not exist are orphans: they are reported as
warnings and, together with their descendants, left out of the tree.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..catalogs import ROOT_ID
from ..models import NetworkNode


class TopologyError(ValueError):
    """The node list does not describe a valid radial network."""


class MissingRootError(TopologyError):
    pass


class CyclicTopologyError(TopologyError):
    pass


class DuplicateNodeError(TopologyError):
    pass


_WHITE, _GRAY, _BLACK = 0, 1, 2


@dataclass
class NetworkTree:
    """
    Radial network arena.

    Attributes:
        nodes: Input nodes; a node's index is its position in this list
        root: Index of the root transformer node
        parent: Parent index per node (None for the root and orphans)
        children: Child indices per node, in input order
        order: Pre-order of the nodes reachable from the root
        connected: Reachability from the root per node
        orphans: Indices of nodes whose declared parent does not exist
    """
    nodes: List[NetworkNode]
    root: int
    parent: List[Optional[int]]
    children: List[List[int]]
    order: List[int] = field(default_factory=list)
    connected: List[bool] = field(default_factory=list)
    orphans: List[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def post_order(self) -> List[int]:
        """Reachable nodes with every child before its parent."""
        return self.order[::-1]

    def orphan_warnings(self) -> List[str]:
        return [
            f"Orphan node detected: {self.nodes[i].id} has no valid parent "
            f"({self.nodes[i].parent_id!r}); it is excluded from the calculation."
            for i in self.orphans
        ]


def _find_cycle(parent: List[Optional[int]]) -> Optional[int]:
    """Return the index of a node lying on a parent cycle, or None."""
    color = [_WHITE] * len(parent)
    for start in range(len(parent)):
        if color[start] != _WHITE:
            continue
        path = []
        i = start
        while i is not None and color[i] == _WHITE:
            color[i] = _GRAY
            path.append(i)
            i = parent[i]
        if i is not None and color[i] == _GRAY:
            return i
        for j in path:
            color[j] = _BLACK
    return None


def build_tree(nodes: Sequence[NetworkNode]) -> NetworkTree:
    """
    Build and validate the network tree.

    Args:
        nodes: Flat node list, exactly one of them being the root

    Returns:
        NetworkTree with traversal order and reachability

    Raises:
        DuplicateNodeError: Two nodes share an id
        MissingRootError: No node carries the root id
        CyclicTopologyError: A parent chain loops back on itself
    """
    nodes = list(nodes)
    index: Dict[str, int] = {}
    for i, node in enumerate(nodes):
        if node.id in index:
            raise DuplicateNodeError(f"Duplicate node id '{node.id}' in network topology")
        index[node.id] = i

    root = index.get(ROOT_ID)
    if root is None:
        raise MissingRootError(f"Root node '{ROOT_ID}' not found. Invalid topology.")

    parent: List[Optional[int]] = [None] * len(nodes)
    children: List[List[int]] = [[] for _ in nodes]
    orphans: List[int] = []
    for i, node in enumerate(nodes):
        if i == root:
            continue
        p = index.get(node.parent_id)
        if p is None:
            orphans.append(i)
        else:
            parent[i] = p
            children[p].append(i)

    cyclic = _find_cycle(parent)
    if cyclic is not None:
        raise CyclicTopologyError(
            f"Cyclic dependency detected in network topology involving node {nodes[cyclic].id}"
        )

    order: List[int] = []
    connected = [False] * len(nodes)
    stack = [root]
    while stack:
        i = stack.pop()
        connected[i] = True
        order.append(i)
        stack.extend(reversed(children[i]))

    return NetworkTree(
        nodes=nodes,
        root=root,
        parent=parent,
        children=children,
        order=order,
        connected=connected,
        orphans=orphans,
    )
