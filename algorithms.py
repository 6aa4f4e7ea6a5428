"""
Algorithm interfaces for routing.

Keeps graph algorithms separate from router wiring and simulation details.
"""

from abc import ABC, abstractmethod
from typing import Dict, Tuple

from nodes import RouterNode
from graph import Graph
from routing import RoutingTable


class DijkstraEngine(ABC):
    """
    Interface for single-source shortest-path computation.
    """

    @abstractmethod
    def shortest_path_costs(self, graph: Graph, source: RouterNode) -> Dict[RouterNode, int]:
        """
        Compute shortest-path costs from source to all reachable nodes.

        Returns:
            Mapping dest_node -> path_cost(source -> dest_node).
        """
        raise NotImplementedError

    @abstractmethod
    def shortest_paths(
        self, graph: Graph, source: RouterNode
    ) -> Tuple[Dict[RouterNode, int], Dict[RouterNode, RouterNode]]:
        """
        Compute shortest-path costs plus the predecessor chain for each dest.

        Returns:
            (dist, prev) where dist is the cost map and prev records parents.
        """
        raise NotImplementedError


class DistanceVectorEngine(ABC):
    """
    Interface for a Bellman–Ford-style distance-vector relaxation step.
    """

    @abstractmethod
    def relax(self, current: RoutingTable, received: RoutingTable) -> Tuple[RoutingTable, bool]:
        """
        Relax current against one table received from a neighbour.

        Args:
            current: the receiving node's table. Left untouched.
            received: the table the neighbour advertised.

        Returns:
            (updated, changed): the relaxed copy of current and whether any
            row differs from current.
        """
        raise NotImplementedError
