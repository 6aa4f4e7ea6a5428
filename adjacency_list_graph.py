"""
Concrete link graph for dvsim, backed by an adjacency list.
"""

from typing import Dict, Iterable, Mapping

from nodes import RouterNode
from graph import Graph


class AdjacencyListGraph(Graph):
    """
    Directed, weighted graph backed by a node -> (neighbour -> cost) mapping.
    """

    def __init__(self) -> None:
        self._adj: Dict[RouterNode, Dict[RouterNode, int]] = {}

    # --- Mutation API (topology loading only, not part of Graph interface) ---

    def add_node(self, node: RouterNode) -> None:
        """Ensure node exists in the graph."""
        self._adj.setdefault(node, {})

    def add_edge(self, src: RouterNode, dst: RouterNode, cost: int) -> None:
        """
        Add or update a directed link src -> dst.
        Auto-adds nodes if they don't exist.
        """
        self.add_node(src)
        self.add_node(dst)
        self._adj[src][dst] = cost

    # --- Graph interface -----------------------------------------------------

    def nodes(self) -> Iterable[RouterNode]:
        return self._adj.keys()

    def outgoing(self, node: RouterNode) -> Mapping[RouterNode, int]:
        return dict(self._adj.get(node, {}))
