"""
Directed, weighted link graph for dvsim.

Nodes are RouterNode instances.
Edges are directed: u -> v with a non-negative integer link cost.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Mapping

from nodes import RouterNode


class Graph(ABC):
    """Directed, weighted graph over RouterNode objects."""

    @abstractmethod
    def nodes(self) -> Iterable[RouterNode]:
        """Return all nodes in the graph."""
        raise NotImplementedError

    @abstractmethod
    def outgoing(self, node: RouterNode) -> Mapping[RouterNode, int]:
        """
        Outgoing neighbours and link costs for a given node.

        Returns: dict[RouterNode, int]
        """
        raise NotImplementedError
