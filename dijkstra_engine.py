"""
Heap-based DijkstraEngine implementation for dvsim.

Used as a reference oracle: on a static topology the converged
distance-vector costs must match the costs computed here.
"""

from typing import Dict, Tuple
import heapq
import math

from nodes import RouterNode
from graph import Graph
from algorithms import DijkstraEngine


class SimpleDijkstraEngine(DijkstraEngine):
    """
    Single-source Dijkstra using a binary heap.

    Complexity:
        O(E log V) over the nodes reachable from the source.
    """

    def shortest_path_costs(self, graph: Graph, source: RouterNode) -> Dict[RouterNode, int]:
        """
        Compute only the cost map for all reachable nodes from source.
        """
        dist, _ = self.shortest_paths(graph, source)
        return dist

    def shortest_paths(
        self, graph: Graph, source: RouterNode
    ) -> Tuple[Dict[RouterNode, int], Dict[RouterNode, RouterNode]]:
        """
        Dijkstra variant that also records predecessors for path reconstruction.

        The predecessor map omits the source itself because it has no parent.
        Heap entries carry the node index as a tie-breaker so nodes are never
        compared directly.
        """
        dist: Dict[RouterNode, int] = {source: 0}
        prev: Dict[RouterNode, RouterNode] = {}
        pq = [(0, source.index, source)]

        while pq:
            d_u, _, u = heapq.heappop(pq)
            # Skip outdated entries
            if d_u != dist.get(u, math.inf):
                continue

            for v, w in graph.outgoing(u).items():
                alt = d_u + w
                if alt < dist.get(v, math.inf):
                    dist[v] = alt
                    prev[v] = u
                    heapq.heappush(pq, (alt, v.index, v))

        return dist, prev
